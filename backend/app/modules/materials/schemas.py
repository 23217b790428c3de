"""Pydantic schemas for the materials catalog."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Free-text catalog groupings offered by the material editors.
MATERIAL_CATEGORIES: tuple[str, ...] = (
    "Metals",
    "Composites",
    "Wood",
    "Paints",
    "Plastics",
    "Insulation",
    "Glass",
    "Textiles",
)


class Material(BaseModel):
    """A catalog material with its emission factor.

    Instances are immutable; the catalog cache shares them between readers.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    category: str
    gwp_factor: float = Field(ge=0.0, description="kg CO2e per kg of material")
    unit: str = "kg"
    density: float | None = None
    description: str | None = None


class MaterialCreate(BaseModel):
    """Request body for creating a material.

    Constraints are checked by ``validate_material`` so that every
    violation is reported at once.
    """

    id: str | None = None
    name: str = ""
    aliases: list[str] = Field(default_factory=list)
    category: str = ""
    gwp_factor: float = 0.0
    unit: str = "kg"
    density: float | None = None
    description: str | None = None


class MaterialUpdate(BaseModel):
    """Partial update of a material; unset fields are left unchanged."""

    name: str | None = None
    aliases: list[str] | None = None
    category: str | None = None
    gwp_factor: float | None = None
    unit: str | None = None
    density: float | None = None
    description: str | None = None


class MaterialListResponse(BaseModel):
    """Paginated, filtered material listing."""

    items: list[Material]
    total: int


class ImportResult(BaseModel):
    """Outcome of a batch import."""

    imported: int
    skipped: int


class CatalogStats(BaseModel):
    """Aggregate figures over the whole catalog."""

    total: int
    by_category: dict[str, int] = Field(default_factory=dict)
    average_gwp_factor: float = 0.0
