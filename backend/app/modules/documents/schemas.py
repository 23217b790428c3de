"""Pydantic schemas for parsed bill-of-materials documents."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.modules.materials.schemas import Material
from app.modules.pcr.schemas import PCRCategory


class ParsedMaterialEntry(BaseModel):
    """One material line recognised in a document.

    ``quantity`` is always in kilograms. Entries stay mutable until the GWP
    calculation copies them.
    """

    model_config = ConfigDict(validate_assignment=True)

    original_text: str
    material: Material | None = None
    quantity: float = Field(ge=0.0)
    unit: str = "kg"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    line_number: int | None = Field(default=None, ge=1)
    context: str | None = None
    pcr_category: PCRCategory | None = None
    category_confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class CategoryBreakdown(BaseModel):
    """Entries of one PCR category and their summed weight (kg)."""

    category: PCRCategory
    materials: list[ParsedMaterialEntry] = Field(default_factory=list)
    total_weight: float = 0.0


class DocumentMetadata(BaseModel):
    """Descriptive data about a parsed document."""

    source: str = Field(description="Originating shipyard export, usually the file stem")
    parse_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    ship_type: str | None = None
    length: str | None = None
    displacement: str | None = Field(
        default=None,
        description="Free text such as '2,400 t'; the first number is the displacement",
    )


class ParsedDocument(BaseModel):
    """A processed input file.

    ``total_weight`` and ``category_breakdown`` are derived from
    ``materials`` on access, so they are always consistent with the entries.
    """

    file_name: str
    materials: list[ParsedMaterialEntry] = Field(default_factory=list)
    metadata: DocumentMetadata

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_weight(self) -> float:
        return sum(entry.quantity for entry in self.materials)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def category_breakdown(self) -> dict[str, CategoryBreakdown]:
        return build_category_breakdown(self.materials)


class FileProcessingResult(BaseModel):
    """Outcome of extracting and parsing a single uploaded file."""

    file_name: str
    success: bool
    document: ParsedDocument | None = None
    error: str | None = None


def build_category_breakdown(
    entries: list[ParsedMaterialEntry],
) -> dict[str, CategoryBreakdown]:
    """Group categorised entries by PCR category id, summing quantities.

    Uncategorised entries are left out.
    """
    breakdown: dict[str, CategoryBreakdown] = {}
    for entry in entries:
        if entry.pcr_category is None:
            continue
        category_id = entry.pcr_category.id
        group = breakdown.get(category_id)
        if group is None:
            group = breakdown[category_id] = CategoryBreakdown(category=entry.pcr_category)
        group.materials.append(entry)
        group.total_weight += entry.quantity
    return breakdown
