"""Human review of parsed material entries before calculation.

A ``ReviewSession`` flattens the entries of several documents into one
editable list. Each entry remembers the document it came from, so
``complete()`` can rebuild every document with its edited entries even
after entries have been removed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Self
from uuid import uuid4

from app.core.logging import get_logger
from app.modules.documents.schemas import ParsedDocument, ParsedMaterialEntry
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.materials.schemas import Material
from app.modules.materials.validation import MaterialValidationError, validate_material
from app.modules.pcr.schemas import PCRCategory
from app.modules.review.schemas import ReviewEntry, ReviewStats
from app.modules.units.constants import KG_PER_TONNE

logger = get_logger(__name__)

# Entries matched above this confidence start out validated.
AUTO_VALIDATE_CONFIDENCE = 0.8


class ReviewSession:
    """Editable view over the entries of one or more parsed documents.

    Usage::

        session = ReviewSession.from_documents(documents)
        session.change_quantity(0, 12.5)
        reviewed = session.complete()
    """

    def __init__(self, documents: Sequence[ParsedDocument], entries: Sequence[ReviewEntry]) -> None:
        self._documents = list(documents)
        self._entries = list(entries)

    @classmethod
    def from_documents(cls, documents: Sequence[ParsedDocument]) -> Self:
        entries = [
            ReviewEntry(
                **_entry_fields(entry),
                document_index=document_index,
                is_validated=(
                    entry.material is not None and entry.confidence > AUTO_VALIDATE_CONFIDENCE
                ),
            )
            for document_index, document in enumerate(documents)
            for entry in document.materials
        ]
        return cls(documents, entries)

    @property
    def entries(self) -> list[ReviewEntry]:
        return list(self._entries)

    def _entry(self, index: int) -> ReviewEntry:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No review entry at index {index}")
        return self._entries[index]

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def select_material(self, index: int, material: Material) -> ReviewEntry:
        entry = self._entry(index)
        entry.material = material
        entry.confidence = 1.0
        entry.is_validated = True
        entry.user_modified = True
        return entry

    def select_category(self, index: int, category: PCRCategory) -> ReviewEntry:
        entry = self._entry(index)
        entry.pcr_category = category
        entry.category_confidence = 1.0
        entry.user_modified = True
        return entry

    def change_quantity(self, index: int, tonnes: float) -> ReviewEntry:
        """Set the quantity of entry *index* from a value in tonnes."""
        if tonnes < 0:
            raise ValueError("Quantity must not be negative")
        entry = self._entry(index)
        entry.quantity = tonnes * KG_PER_TONNE
        entry.user_modified = True
        return entry

    def toggle_validation(self, index: int) -> ReviewEntry:
        entry = self._entry(index)
        entry.is_validated = not entry.is_validated
        return entry

    def validate(self, index: int) -> ReviewEntry:
        entry = self._entry(index)
        entry.is_validated = True
        return entry

    def remove(self, index: int) -> ReviewEntry:
        entry = self._entry(index)
        del self._entries[index]
        return entry

    async def add_custom_material(
        self,
        index: int,
        catalog: MaterialsCatalog,
        data: Mapping[str, Any],
    ) -> Material:
        """Add a user-defined material to *catalog* and assign it to entry *index*.

        Raises:
            IndexError: If *index* does not name an entry.
            MaterialValidationError: Listing every violated constraint.
            MaterialStoreError: If the catalog store rejects the material.
        """
        self._entry(index)

        errors = validate_material(data)
        if errors:
            raise MaterialValidationError(errors)

        material = await catalog.add({**data, "id": f"custom_{uuid4().hex}"})
        self.select_material(index, material)
        logger.info("custom_material_assigned", index=index, material_id=material.id)
        return material

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def stats(self) -> ReviewStats:
        return ReviewStats(
            total=len(self._entries),
            identified=sum(1 for e in self._entries if e.material is not None),
            categorized=sum(1 for e in self._entries if e.pcr_category is not None),
            validated=sum(1 for e in self._entries if e.is_validated),
            user_modified=sum(1 for e in self._entries if e.user_modified),
        )

    def filter(
        self,
        search: str | None = None,
        only_modified: bool = False,
    ) -> list[tuple[int, ReviewEntry]]:
        """Entries (with their index) whose text or material name contains *search*."""
        term = (search or "").strip().lower()
        matches: list[tuple[int, ReviewEntry]] = []
        for index, entry in enumerate(self._entries):
            if only_modified and not entry.user_modified:
                continue
            if term and not (
                term in entry.original_text.lower()
                or (entry.material is not None and term in entry.material.name.lower())
            ):
                continue
            matches.append((index, entry))
        return matches

    def complete(self) -> list[ParsedDocument]:
        """Rebuild every document from its current entries."""
        reviewed: list[ParsedDocument] = []
        for document_index, document in enumerate(self._documents):
            materials = [
                _to_parsed_entry(entry)
                for entry in self._entries
                if entry.document_index == document_index
            ]
            reviewed.append(document.model_copy(update={"materials": materials}))

        stats = self.stats()
        logger.info(
            "review_completed",
            documents=len(reviewed),
            entries=stats.total,
            validated=stats.validated,
            user_modified=stats.user_modified,
        )
        return reviewed


def _entry_fields(entry: ParsedMaterialEntry) -> dict[str, Any]:
    return {name: getattr(entry, name) for name in ParsedMaterialEntry.model_fields}


def _to_parsed_entry(entry: ReviewEntry) -> ParsedMaterialEntry:
    return ParsedMaterialEntry(**_entry_fields(entry))
