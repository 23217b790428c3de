"""FastAPI dependencies for the materials catalog."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app.modules.materials.catalog import MaterialsCatalog


def get_catalog(request: Request) -> MaterialsCatalog:
    """Return the catalog built by the application lifespan."""
    catalog: MaterialsCatalog | None = getattr(request.app.state, "materials_catalog", None)
    if catalog is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Materials catalog is not initialised",
        )
    return catalog


Catalog = Annotated[MaterialsCatalog, Depends(get_catalog)]
