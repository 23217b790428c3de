"""Units module: weight unit normalisation and kilogram conversion."""

from app.modules.units.conversion import (
    WeightUnit,
    convert_from_kg,
    convert_to_kg,
    normalize_unit,
)

__all__ = [
    "WeightUnit",
    "convert_from_kg",
    "convert_to_kg",
    "normalize_unit",
]
