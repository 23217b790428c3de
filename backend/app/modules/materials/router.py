"""API router for the materials catalog."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Response, status

from app.modules.materials.catalog import MaterialNotFoundError
from app.modules.materials.dependencies import Catalog
from app.modules.materials.schemas import (
    CatalogStats,
    ImportResult,
    Material,
    MaterialCreate,
    MaterialListResponse,
    MaterialUpdate,
)
from app.modules.materials.store import MaterialStoreError
from app.modules.materials.validation import MaterialValidationError

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _store_unavailable(exc: MaterialStoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Materials store error: {exc}",
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    catalog: Catalog,
    search: str = Query(default="", max_length=255),
    category: str | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
) -> MaterialListResponse:
    """List materials filtered by name substring and category."""
    try:
        items, total = await catalog.search(search, category, offset=offset, limit=limit)
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc
    return MaterialListResponse(items=items, total=total)


@router.post("", response_model=Material, status_code=status.HTTP_201_CREATED)
async def create_material(body: MaterialCreate, catalog: Catalog) -> Material:
    try:
        return await catalog.add(body.model_dump())
    except MaterialValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        ) from exc
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get("/export", response_model=list[Material])
async def export_materials(catalog: Catalog) -> list[Material]:
    """Export the whole catalog as JSON."""
    try:
        return await catalog.export_all()
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc


@router.post("/import", response_model=ImportResult)
async def import_materials(
    catalog: Catalog,
    records: list[Any] = Body(...),
) -> ImportResult:
    """Import a JSON array of material records, skipping invalid ones."""
    return await catalog.import_batch(records)


@router.post("/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh_materials(catalog: Catalog) -> Response:
    """Force a reload of the catalog cache from the store."""
    try:
        await catalog.refresh()
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reset", response_model=ImportResult)
async def reset_materials(catalog: Catalog) -> ImportResult:
    """Replace the catalog with the default materials."""
    try:
        return await catalog.reset_to_defaults()
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc


@router.get("/stats", response_model=CatalogStats)
async def material_stats(catalog: Catalog) -> CatalogStats:
    try:
        return await catalog.stats()
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc


@router.patch("/{material_id}", response_model=Material)
async def update_material(
    material_id: str,
    body: MaterialUpdate,
    catalog: Catalog,
) -> Material:
    try:
        return await catalog.update(material_id, body)
    except MaterialNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MaterialValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors,
        ) from exc
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(material_id: str, catalog: Catalog) -> Response:
    try:
        if await catalog.get_by_id(material_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Material {material_id} not found",
            )
        await catalog.remove(material_id)
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_materials(catalog: Catalog) -> Response:
    """Delete every material."""
    try:
        await catalog.clear_all()
    except MaterialStoreError as exc:
        raise _store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
