"""Pydantic schemas for PCR (Product Category Rules) life-cycle categories."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PCRCategory(BaseModel):
    """One of the seven fixed PCR macro-groups for yachts and ships."""

    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    name: str
    description: str
    examples: tuple[str, ...] = ()


class ClassifyRequest(BaseModel):
    """Request body for free-text classification."""

    text: str = Field(min_length=1)
    material_category: str | None = Field(
        default=None,
        description="Optional catalog category label; enables the material heuristic",
    )


class ClassifyResponse(BaseModel):
    """Classification outcome; ``category`` is null when nothing matched."""

    category: PCRCategory | None = None
    method: str | None = None
