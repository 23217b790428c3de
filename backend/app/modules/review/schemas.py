"""Pydantic schemas for reviewing parsed material entries."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.modules.documents.schemas import ParsedDocument, ParsedMaterialEntry


class ReviewEntry(ParsedMaterialEntry):
    """A parsed entry under human review."""

    document_index: int = Field(default=0, ge=0)
    is_validated: bool = False
    user_modified: bool = False


class ReviewStats(BaseModel):
    total: int = 0
    identified: int = 0
    categorized: int = 0
    validated: int = 0
    user_modified: int = 0


class ReviewCompleteRequest(BaseModel):
    """The documents under review and their edited entries."""

    documents: list[ParsedDocument]
    entries: list[ReviewEntry]
