"""Validation and matching helpers for catalog materials."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from app.modules.materials.schemas import Material


class MaterialValidationError(ValueError):
    """Raised when a material violates one or more catalog constraints."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_material(data: Mapping[str, Any] | Material) -> list[str]:
    """Return every constraint violated by *data* (empty when valid)."""
    if isinstance(data, Material):
        data = data.model_dump()

    errors: list[str] = []
    if not str(data.get("name") or "").strip():
        errors.append("Material name required")
    if not str(data.get("category") or "").strip():
        errors.append("Category required")

    gwp_factor = data.get("gwp_factor")
    if not _is_number(gwp_factor) or not math.isfinite(gwp_factor) or gwp_factor <= 0:
        errors.append("GWP factor must be greater than 0")

    return errors


def ensure_valid(data: Mapping[str, Any] | Material) -> None:
    errors = validate_material(data)
    if errors:
        raise MaterialValidationError(errors)


def is_importable(record: Mapping[str, Any]) -> bool:
    """Minimal batch-import check: name, category and a numeric factor."""
    return (
        bool(record.get("name"))
        and bool(record.get("category"))
        and _is_number(record.get("gwp_factor"))
    )


def parse_aliases(aliases: str) -> list[str]:
    """Split a comma-separated alias string, dropping blanks."""
    return [alias.strip() for alias in aliases.split(",") if alias.strip()]


def format_aliases(aliases: list[str]) -> str:
    return ", ".join(aliases)


def calculate_material_confidence(search_term: str, material: Material) -> float:
    """Score how well *search_term* identifies *material*.

    1.0 exact name, 0.95 exact alias, 0.8 name containment (either way),
    0.7 alias containment (either way), 0.5 otherwise.
    """
    term = search_term.lower()
    name = material.name.lower()
    aliases = [alias.lower() for alias in material.aliases]

    if name == term:
        return 1.0
    if term in aliases:
        return 0.95
    if term in name or name in term:
        return 0.8
    if any(term in alias or alias in term for alias in aliases):
        return 0.7
    return 0.5


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
