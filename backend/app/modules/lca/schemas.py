"""Pydantic schemas for the GWP (Global Warming Potential) calculation."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.modules.documents.schemas import ParsedDocument, ParsedMaterialEntry
from app.modules.pcr.schemas import PCRCategory

BenchmarkStatus = Literal["excellent", "good", "needs_improvement", "unknown"]


class GWPResult(BaseModel):
    """GWP contribution of one material entry."""

    entry: ParsedMaterialEntry
    gwp_total: float = Field(description="kg CO2e")
    percentage: float = Field(description="Share of the document total, 0-100")
    factor_used: float = Field(description="kg CO2e per kg actually applied")
    fallback: bool = False


class PhaseBreakdown(BaseModel):
    """Fixed-share split of the total over life-cycle phases (kg CO2e)."""

    production: float = 0.0
    transport: float = 0.0
    processing: float = 0.0


class Benchmarks(BaseModel):
    """Reference totals scaled by the vessel displacement (kg CO2e)."""

    displacement_tonnes: float
    best_practice: float
    industry_average: float
    regulatory_limit: float


class IdentificationStats(BaseModel):
    identified_materials: int = 0
    unidentified_materials: int = 0
    total_weight: float = Field(default=0.0, description="kg")
    identification_rate: float = Field(default=0.0, ge=0.0, le=100.0)


class GWPCalculation(BaseModel):
    """Outcome of a GWP calculation over one document."""

    total_gwp: float = 0.0
    gwp_per_tonne: float = 0.0
    results: list[GWPResult] = Field(default_factory=list)
    phase_breakdown: PhaseBreakdown = Field(default_factory=PhaseBreakdown)
    benchmarks: Benchmarks
    stats: IdentificationStats = Field(default_factory=IdentificationStats)


class MacroGroup(BaseModel):
    """GWP results aggregated per PCR macro-group."""

    category: PCRCategory
    total_gwp: float = 0.0
    percentage: float = 0.0
    results: list[GWPResult] = Field(default_factory=list)


class Recommendation(BaseModel):
    kind: Literal["reduction", "benchmark", "data_quality"]
    message: str
    potential_saving_tonnes: float | None = None


class AnalysisReport(BaseModel):
    """Calculation plus derived analysis, as returned to clients."""

    id: UUID | None = None
    created_at: datetime | None = None
    document: ParsedDocument
    calculation: GWPCalculation
    macro_groups: list[MacroGroup] = Field(default_factory=list)
    benchmark_status: BenchmarkStatus = "unknown"
    recommendations: list[Recommendation] = Field(default_factory=list)


class CalculateRequest(BaseModel):
    """Request body for calculating GWP over parsed documents."""

    documents: list[ParsedDocument] = Field(default_factory=list)
    displacement: float | None = Field(
        default=None,
        gt=0,
        description="Vessel displacement in tonnes. Defaults to the document metadata.",
    )
