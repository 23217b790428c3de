"""Analysis service: business logic layer for document GWP analysis.

Wraps the stateless ``DocumentParser`` and ``GWPCalculator`` with the
multi-file flow: concurrent extraction and parsing, merging, calculation,
derived analysis and optional persistence of a run summary.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.db.models import AnalysisResultRecord
from app.modules.documents.extraction import ExtractionError
from app.modules.documents.parser import DocumentParser, merge_documents
from app.modules.documents.schemas import FileProcessingResult, ParsedDocument
from app.modules.lca.analysis import (
    benchmark_status,
    generate_recommendations,
    macro_group_analysis,
)
from app.modules.lca.engine import GWPCalculator
from app.modules.lca.schemas import AnalysisReport
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.materials.store import MaterialStoreError

logger = get_logger(__name__)


class AnalysisPersistenceError(RuntimeError):
    """Raised when an analysis summary cannot be stored."""


class AnalysisService:
    """Document ingestion and GWP analysis service.

    Usage::

        service = AnalysisService(catalog, session=db_session)
        results = await service.process_files([("Cantiere_A.csv", payload)])
        report = await service.calculate([r.document for r in results if r.success])
    """

    def __init__(
        self,
        catalog: MaterialsCatalog,
        session: AsyncSession | None = None,
        *,
        calculator: GWPCalculator | None = None,
    ) -> None:
        settings = get_settings()
        self._catalog = catalog
        self._session = session
        self._parser = DocumentParser(catalog)
        self._calculator = calculator or GWPCalculator(
            fallback_factor=settings.gwp_fallback_factor,
            default_displacement=settings.default_displacement,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_files(
        self,
        files: Sequence[tuple[str, bytes]],
    ) -> list[FileProcessingResult]:
        """Extract and parse every file concurrently.

        An unreadable file fails only its own result.

        Raises:
            MaterialStoreError: If the catalog cannot be loaded at all.
        """
        tasks = [self._parser.parse_file(file_name, content) for file_name, content in files]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results: list[FileProcessingResult] = []
        for (file_name, _), outcome in zip(files, outcomes, strict=True):
            if isinstance(outcome, MaterialStoreError):
                raise outcome
            if isinstance(outcome, ExtractionError):
                logger.warning("file_processing_failed", file_name=file_name, error=str(outcome))
                results.append(
                    FileProcessingResult(file_name=file_name, success=False, error=str(outcome))
                )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(
                FileProcessingResult(file_name=file_name, success=True, document=outcome)
            )

        logger.info(
            "files_processed",
            file_count=len(files),
            succeeded=sum(1 for r in results if r.success),
        )
        return results

    async def calculate(
        self,
        documents: Sequence[ParsedDocument],
        displacement: float | None = None,
    ) -> AnalysisReport:
        """Merge *documents*, calculate their GWP and build the report.

        Raises:
            AnalysisPersistenceError: If a session is attached and the
                summary cannot be stored.
        """
        document = self._combine(documents, displacement)
        calculation = self._calculator.calculate(document)

        report = AnalysisReport(
            document=document,
            calculation=calculation,
            macro_groups=macro_group_analysis(calculation),
            benchmark_status=benchmark_status(calculation),
            recommendations=generate_recommendations(calculation),
        )

        if self._session is not None:
            report = await self._persist(self._session, report)

        logger.info(
            "analysis_completed",
            source=document.metadata.source,
            entries=len(document.materials),
            total_gwp=calculation.total_gwp,
            benchmark_status=report.benchmark_status,
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _combine(
        documents: Sequence[ParsedDocument],
        displacement: float | None,
    ) -> ParsedDocument:
        if len(documents) == 1:
            document = documents[0]
            if displacement is None:
                return document
            metadata = document.metadata.model_copy(update={"displacement": str(displacement)})
            return document.model_copy(update={"metadata": metadata})
        return merge_documents(documents, displacement)

    async def _persist(self, session: AsyncSession, report: AnalysisReport) -> AnalysisReport:
        record = AnalysisResultRecord(
            id=uuid4(),
            source=report.document.metadata.source,
            total_gwp_kg_co2e=report.calculation.total_gwp,
            material_count=len(report.document.materials),
            summary=self._summary(report),
            created_at=datetime.now(UTC),
        )
        session.add(record)
        try:
            await session.flush()
        except SQLAlchemyError as exc:
            logger.error("analysis_persist_failed", source=record.source, error=str(exc))
            raise AnalysisPersistenceError("Failed to store analysis summary") from exc

        logger.info("analysis_persisted", analysis_id=str(record.id))
        return report.model_copy(update={"id": record.id, "created_at": record.created_at})

    @staticmethod
    def _summary(report: AnalysisReport) -> dict[str, Any]:
        calculation = report.calculation
        return {
            "file_name": report.document.file_name,
            "total_gwp": calculation.total_gwp,
            "gwp_per_tonne": calculation.gwp_per_tonne,
            "phase_breakdown": calculation.phase_breakdown.model_dump(),
            "benchmarks": calculation.benchmarks.model_dump(),
            "stats": calculation.stats.model_dump(),
            "benchmark_status": report.benchmark_status,
            "macro_groups": [
                {
                    "category": group.category.id,
                    "total_gwp": group.total_gwp,
                    "percentage": group.percentage,
                }
                for group in report.macro_groups
            ],
            "recommendations": [r.message for r in report.recommendations],
        }
