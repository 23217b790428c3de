"""Weight unit normalisation and conversion to kilograms."""

from __future__ import annotations

from enum import Enum

from app.modules.units.constants import KG_PER_TONNE, TONNE_MARKERS


class WeightUnit(str, Enum):
    """Weight units found in shipyard bills of materials."""

    KG = "kg"
    TONNE = "t"
    TONNES = "tonnes"
    TONS = "tons"


def normalize_unit(raw: str) -> WeightUnit:
    """Map a free-text unit to ``WeightUnit.TONNE`` or ``WeightUnit.KG``.

    Anything that is not recognisably tonne-scale is treated as kilograms.
    """
    lowered = raw.lower()
    if lowered == "t" or any(marker in lowered for marker in TONNE_MARKERS):
        return WeightUnit.TONNE
    return WeightUnit.KG


def convert_to_kg(quantity: float, unit: WeightUnit | str) -> float:
    """Convert *quantity* expressed in *unit* to kilograms.

    Unknown unit tags are assumed to be tonnes. Note that this differs
    from :func:`normalize_unit`, which falls back to kilograms.
    """
    resolved = _coerce(unit)
    if resolved is WeightUnit.KG:
        return quantity
    return quantity * KG_PER_TONNE


def convert_from_kg(quantity_kg: float, unit: WeightUnit | str) -> float:
    """Inverse of :func:`convert_to_kg`."""
    resolved = _coerce(unit)
    if resolved is WeightUnit.KG:
        return quantity_kg
    return quantity_kg / KG_PER_TONNE


def _coerce(unit: WeightUnit | str) -> WeightUnit | None:
    if isinstance(unit, WeightUnit):
        return unit
    try:
        return WeightUnit(unit)
    except ValueError:
        return None
