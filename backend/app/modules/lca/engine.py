"""Stateless GWP (Global Warming Potential) calculation engine.

Applies each matched material's emission factor to its quantity, falling
back to a generic factor for unmatched or weakly matched entries, and
scales reference benchmarks by the vessel displacement.
"""

from __future__ import annotations

import re

from app.core.logging import get_logger
from app.modules.documents.schemas import ParsedDocument, ParsedMaterialEntry
from app.modules.lca.schemas import (
    Benchmarks,
    GWPCalculation,
    GWPResult,
    IdentificationStats,
    PhaseBreakdown,
)
from app.modules.units.constants import KG_PER_TONNE

logger = get_logger(__name__)

DEFAULT_FALLBACK_FACTOR = 2.5
DEFAULT_DISPLACEMENT_TONNES = 1800.0
# Matches at or below this confidence use the fallback factor.
MIN_FACTOR_CONFIDENCE = 0.5

_DEFAULT_PHASE_SHARES: dict[str, float] = {
    "production": 0.75,
    "transport": 0.15,
    "processing": 0.10,
}

# kg CO2e per tonne of displacement.
_DEFAULT_BENCHMARKS: dict[str, float] = {
    "best_practice": 1220.0,
    "industry_average": 1580.0,
    "regulatory_limit": 1950.0,
}

_NUMERIC_TOKEN = re.compile(r"[0-9][0-9,.]*")


def extract_displacement(raw: str | None, default: float = DEFAULT_DISPLACEMENT_TONNES) -> float:
    """First numeric token of *raw* with comma groups stripped, else *default*."""
    if not raw:
        return default
    match = _NUMERIC_TOKEN.search(raw)
    if match is None:
        return default
    try:
        value = float(match.group(0).replace(",", ""))
    except ValueError:
        return default
    return value if value > 0 else default


class GWPCalculator:
    """Computes the GWP of a parsed document.

    Usage::

        calculator = GWPCalculator()
        calculation = calculator.calculate(document)
    """

    def __init__(
        self,
        *,
        fallback_factor: float = DEFAULT_FALLBACK_FACTOR,
        phase_shares: dict[str, float] | None = None,
        benchmarks: dict[str, float] | None = None,
        default_displacement: float = DEFAULT_DISPLACEMENT_TONNES,
    ) -> None:
        self._fallback_factor = fallback_factor
        self._phase_shares = phase_shares or dict(_DEFAULT_PHASE_SHARES)
        self._benchmarks = benchmarks or dict(_DEFAULT_BENCHMARKS)
        self._default_displacement = default_displacement

    def calculate(self, document: ParsedDocument) -> GWPCalculation:
        """Calculate the GWP of every entry in *document*.

        Results are sorted by contribution, largest first, and hold copies
        of the entries so later edits to the document do not leak in.
        """
        results: list[GWPResult] = []
        for entry in document.materials:
            factor, fallback = self._factor_for(entry)
            results.append(
                GWPResult(
                    entry=entry.model_copy(deep=True),
                    gwp_total=(entry.quantity / KG_PER_TONNE) * factor * KG_PER_TONNE,
                    percentage=0.0,
                    factor_used=factor,
                    fallback=fallback,
                )
            )

        total_gwp = sum(r.gwp_total for r in results)
        if total_gwp > 0:
            for result in results:
                result.percentage = result.gwp_total / total_gwp * 100
        results.sort(key=lambda r: r.gwp_total, reverse=True)

        total_weight = document.total_weight
        gwp_per_tonne = total_gwp / (total_weight / KG_PER_TONNE) if total_weight > 0 else 0.0

        displacement = extract_displacement(
            document.metadata.displacement, self._default_displacement
        )
        stats = self._stats(document.materials, total_weight)

        logger.info(
            "gwp_calculated",
            file_name=document.file_name,
            entries=len(results),
            total_gwp=total_gwp,
            fallback_entries=sum(1 for r in results if r.fallback),
            displacement=displacement,
        )

        return GWPCalculation(
            total_gwp=total_gwp,
            gwp_per_tonne=gwp_per_tonne,
            results=results,
            phase_breakdown=PhaseBreakdown(
                **{phase: total_gwp * share for phase, share in self._phase_shares.items()}
            ),
            benchmarks=Benchmarks(
                displacement_tonnes=displacement,
                **{name: per_tonne * displacement for name, per_tonne in self._benchmarks.items()},
            ),
            stats=stats,
        )

    def _factor_for(self, entry: ParsedMaterialEntry) -> tuple[float, bool]:
        if entry.material is not None and entry.confidence > MIN_FACTOR_CONFIDENCE:
            return entry.material.gwp_factor, False
        return self._fallback_factor, True

    @staticmethod
    def _stats(entries: list[ParsedMaterialEntry], total_weight: float) -> IdentificationStats:
        identified = sum(1 for e in entries if e.material is not None)
        return IdentificationStats(
            identified_materials=identified,
            unidentified_materials=len(entries) - identified,
            total_weight=total_weight,
            identification_rate=identified / len(entries) * 100 if entries else 0.0,
        )
