"""Derived views over a ``GWPCalculation``: macro-groups, benchmark and hints."""

from __future__ import annotations

from app.modules.lca.schemas import (
    BenchmarkStatus,
    GWPCalculation,
    MacroGroup,
    Recommendation,
)
from app.modules.units.constants import KG_PER_TONNE

# Share of primary aluminium GWP avoided by switching to recycled stock.
RECYCLED_ALUMINIUM_SAVING = 0.94
MIN_IDENTIFICATION_RATE = 80.0
_TOP_RESULTS = 3


def macro_group_analysis(calculation: GWPCalculation) -> list[MacroGroup]:
    """Aggregate results per PCR macro-group, largest GWP first.

    Results without a category are left out.
    """
    groups: dict[str, MacroGroup] = {}
    for result in calculation.results:
        category = result.entry.pcr_category
        if category is None:
            continue
        group = groups.get(category.id)
        if group is None:
            group = groups[category.id] = MacroGroup(category=category)
        group.total_gwp += result.gwp_total
        group.results.append(result)

    for group in groups.values():
        if calculation.total_gwp > 0:
            group.percentage = group.total_gwp / calculation.total_gwp * 100

    return sorted(groups.values(), key=lambda g: g.total_gwp, reverse=True)


def benchmark_status(calculation: GWPCalculation) -> BenchmarkStatus:
    if not calculation.total_gwp:
        return "unknown"
    if calculation.total_gwp < calculation.benchmarks.best_practice:
        return "excellent"
    if calculation.total_gwp < calculation.benchmarks.industry_average:
        return "good"
    return "needs_improvement"


def generate_recommendations(calculation: GWPCalculation) -> list[Recommendation]:
    """Reduction hints for the three largest contributors plus general advisories."""
    recommendations: list[Recommendation] = []

    for result in calculation.results[:_TOP_RESULTS]:
        material = result.entry.material
        if material is None:
            continue
        name = material.name.lower()

        if material.category == "Metals":
            if "primary aluminium" in name or "primary aluminum" in name:
                saving = round(result.gwp_total * RECYCLED_ALUMINIUM_SAVING / KG_PER_TONNE)
                recommendations.append(
                    Recommendation(
                        kind="reduction",
                        message=(
                            "Replacing primary aluminium with recycled aluminium could cut "
                            f"GWP by {saving} t CO2e"
                        ),
                        potential_saving_tonnes=float(saving),
                    )
                )
            if "steel" in name:
                recommendations.append(
                    Recommendation(
                        kind="reduction",
                        message=(
                            "Consider low-carbon steel grades to reduce the impact of "
                            f"{material.name}"
                        ),
                    )
                )
        elif material.category == "Composites":
            if "carbon fibre" in name or "carbon fiber" in name:
                recommendations.append(
                    Recommendation(
                        kind="reduction",
                        message="Evaluate glass fibre in place of carbon fibre where possible",
                    )
                )
        elif material.category == "Paints":
            recommendations.append(
                Recommendation(
                    kind="reduction",
                    message="Use water-based or bio-based paints to reduce the impact of finishes",
                )
            )

    if calculation.total_gwp > calculation.benchmarks.industry_average:
        recommendations.append(
            Recommendation(
                kind="benchmark",
                message="The project exceeds the industry average. Review the main materials.",
            )
        )

    if calculation.stats.identification_rate < MIN_IDENTIFICATION_RATE:
        recommendations.append(
            Recommendation(
                kind="data_quality",
                message="Improve material documentation for a more accurate GWP calculation.",
            )
        )

    return recommendations
