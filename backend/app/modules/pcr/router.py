"""API router for the PCR macro-group taxonomy."""

from __future__ import annotations

from fastapi import APIRouter

from app.modules.pcr.categories import PCRCategorizer
from app.modules.pcr.schemas import ClassifyRequest, ClassifyResponse, PCRCategory

router = APIRouter()

_categorizer = PCRCategorizer()


@router.get("/categories", response_model=list[PCRCategory])
async def list_categories() -> list[PCRCategory]:
    """Return the seven macro-groups in declaration order."""
    return _categorizer.all()


@router.post("/classify", response_model=ClassifyResponse)
async def classify_text(body: ClassifyRequest) -> ClassifyResponse:
    """Classify free text, falling back to the material heuristic.

    The heuristic only runs when ``material_category`` is supplied.
    """
    category = _categorizer.match_header(body.text.strip())
    if category is not None:
        return ClassifyResponse(category=category, method="header")

    category = _categorizer.identify_category(body.text)
    if category is not None:
        return ClassifyResponse(category=category, method="text")

    if body.material_category is not None:
        category = _categorizer.suggest_for_material(body.text, body.material_category)
        if category is not None:
            return ClassifyResponse(category=category, method="material")

    return ClassifyResponse()
