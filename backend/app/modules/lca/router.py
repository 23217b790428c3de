"""API router for document ingestion and GWP analysis endpoints."""

from __future__ import annotations

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from app.core.config import get_settings
from app.db.session import DbSession
from app.modules.documents.schemas import FileProcessingResult, ParsedDocument
from app.modules.lca.schemas import AnalysisReport, CalculateRequest
from app.modules.lca.service import AnalysisPersistenceError, AnalysisService
from app.modules.materials.dependencies import Catalog
from app.modules.materials.store import MaterialStoreError
from app.modules.review.schemas import ReviewCompleteRequest
from app.modules.review.workflow import ReviewSession

router = APIRouter()


def _too_large(upload: UploadFile, max_size: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"{upload.filename} exceeds maximum size of {max_size} bytes",
    )


@router.post("/documents", response_model=list[FileProcessingResult])
async def upload_documents(
    catalog: Catalog,
    files: list[UploadFile] = File(..., description="Bill-of-materials files"),
) -> list[FileProcessingResult]:
    """Extract and parse uploaded files.

    Each file gets its own result; an unreadable file does not fail the
    others.
    """
    max_size = get_settings().max_upload_bytes
    payloads: list[tuple[str, bytes]] = []
    for upload in files:
        # Reject on the declared size before buffering the body.
        if upload.size is not None and upload.size > max_size:
            raise _too_large(upload, max_size)
        content = await upload.read()
        if len(content) > max_size:
            raise _too_large(upload, max_size)
        payloads.append((upload.filename or "upload.txt", content))

    service = AnalysisService(catalog)
    try:
        return await service.process_files(payloads)
    except MaterialStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Materials store error: {exc}",
        ) from exc


@router.post("/calculate", response_model=AnalysisReport)
async def calculate_gwp(
    body: CalculateRequest,
    catalog: Catalog,
    db: DbSession,
) -> AnalysisReport:
    """Calculate the GWP of the given documents and store a run summary."""
    service = AnalysisService(catalog, session=db)
    try:
        return await service.calculate(body.documents, displacement=body.displacement)
    except AnalysisPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc


@router.post("/review/complete", response_model=list[ParsedDocument])
async def complete_review(body: ReviewCompleteRequest) -> list[ParsedDocument]:
    """Rebuild documents from reviewed entries."""
    if any(entry.document_index >= len(body.documents) for entry in body.entries):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Review entry refers to an unknown document",
        )
    return ReviewSession(body.documents, body.entries).complete()
