"""Line-oriented parser turning extracted text into material entries.

Each line is either a PCR macro-group header (which sets the current
category), a table header (skipped), a material line
(``<name> <quantity> [unit]`` or ``<name>: <quantity> [unit]``), or noise
(skipped). Nothing here raises for unrecognised content.
"""

from __future__ import annotations

import asyncio
import math
import re
from collections.abc import Sequence
from pathlib import Path

from app.core.logging import get_logger, log_context
from app.modules.documents.extraction import extract_text
from app.modules.documents.schemas import DocumentMetadata, ParsedDocument, ParsedMaterialEntry
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.pcr.categories import PCRCategorizer
from app.modules.pcr.schemas import PCRCategory
from app.modules.units import convert_to_kg, normalize_unit
from app.modules.units.constants import WEIGHT_UNIT_PATTERN

logger = get_logger(__name__)

MERGED_FILE_NAME = "Combined Analysis"

HEADER_CATEGORY_CONFIDENCE = 0.9
SUGGESTED_CATEGORY_CONFIDENCE = 0.6

_MIN_LINE_LENGTH = 3
_CONTEXT_BEFORE = 2
_CONTEXT_AFTER = 2
_DEFAULT_UNIT = "t"

_TABLE_HEADER_KEYWORDS = (
    "macrogruppo",
    "materiale",
    "peso",
    "unità",
    "material",
    "weight",
    "category",
)
_DIGIT = re.compile(r"[0-9]")

_NUMBER = r"[0-9]+(?:[,.][0-9]+)?"
_MATERIAL_PATTERNS = (
    re.compile(rf"^(.+?)\s+({_NUMBER})\s*({WEIGHT_UNIT_PATTERN})?\s*$", re.IGNORECASE),
    re.compile(rf"^(.+?):\s*({_NUMBER})\s*({WEIGHT_UNIT_PATTERN})?\s*$", re.IGNORECASE),
)
# "2,000" is thousands grouping; "1,2" and "12,50" are decimal commas.
_THOUSANDS_GROUPED = re.compile(r"^[0-9]{1,3},[0-9]{3}$")
_NAME_NOISE = re.compile(r"[^\w\s()-]")
_WHITESPACE = re.compile(r"\s+")


def is_table_header(line: str) -> bool:
    lowered = line.lower()
    return any(keyword in lowered for keyword in _TABLE_HEADER_KEYWORDS) and not _DIGIT.search(
        line
    )


def clean_material_name(raw: str) -> str:
    return _WHITESPACE.sub(" ", _NAME_NOISE.sub("", raw)).strip()


def parse_quantity(raw: str) -> float | None:
    """Parse a captured quantity token; ``None`` unless finite and positive."""
    if _THOUSANDS_GROUPED.match(raw):
        normalized = raw.replace(",", "")
    else:
        normalized = raw.replace(",", ".", 1)
    try:
        value = float(normalized)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def build_context(lines: Sequence[str], index: int) -> str:
    """Surrounding lines, two before to two after, joined with ``" | "``."""
    start = max(0, index - _CONTEXT_BEFORE)
    return " | ".join(lines[start : index + _CONTEXT_AFTER + 1])


class DocumentParser:
    """Parses bill-of-materials documents against a materials catalog.

    Usage::

        parser = DocumentParser(catalog)
        document = await parser.parse_file("Cantiere_A.csv", payload)
    """

    def __init__(
        self,
        catalog: MaterialsCatalog,
        categorizer: PCRCategorizer | None = None,
    ) -> None:
        self._catalog = catalog
        self._categorizer = categorizer or PCRCategorizer()

    async def parse_file(self, file_name: str, content: bytes | str) -> ParsedDocument:
        """Extract text from *content* and parse it.

        Raises:
            ExtractionError: If the payload cannot be read.
        """
        with log_context(file_name=file_name):
            text = await asyncio.to_thread(extract_text, file_name, content)
            return await self.parse_text(text, file_name)

    async def parse_text(self, text: str, file_name: str) -> ParsedDocument:
        lines = text.split("\n")
        entries: list[ParsedMaterialEntry] = []
        names: list[str] = []
        current_category: PCRCategory | None = None
        header_seen = False

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if len(line) < _MIN_LINE_LENGTH:
                continue

            header_category = self._categorizer.match_header(line)
            if header_category is not None:
                current_category = header_category
                header_seen = True
                continue

            if is_table_header(line):
                continue

            parsed = await self._parse_material_line(line, lines, index, current_category)
            if parsed is not None:
                entry, name = parsed
                entries.append(entry)
                names.append(name)

        # Material-based suggestions only apply to documents without any header.
        if not header_seen:
            self._suggest_categories(entries, names)

        document = ParsedDocument(
            file_name=file_name,
            materials=entries,
            metadata=DocumentMetadata(source=Path(file_name).stem),
        )
        logger.info(
            "document_parsed",
            file_name=file_name,
            line_count=len(lines),
            entry_count=len(entries),
            identified=sum(1 for e in entries if e.material is not None),
            total_weight_kg=document.total_weight,
        )
        return document

    async def _parse_material_line(
        self,
        line: str,
        lines: Sequence[str],
        index: int,
        current_category: PCRCategory | None,
    ) -> tuple[ParsedMaterialEntry, str] | None:
        for pattern in _MATERIAL_PATTERNS:
            match = pattern.match(line)
            if match is None:
                continue

            name = clean_material_name(match.group(1))
            quantity = parse_quantity(match.group(2))
            if not name or quantity is None:
                continue

            unit = normalize_unit(match.group(3) or _DEFAULT_UNIT)
            material = await self._catalog.find_material(name)
            confidence = self._catalog.compute_confidence(name, material) if material else 0.0

            category_confidence = (
                HEADER_CATEGORY_CONFIDENCE if current_category is not None else 0.0
            )

            entry = ParsedMaterialEntry(
                original_text=line,
                material=material,
                quantity=convert_to_kg(quantity, unit),
                unit="kg",
                confidence=confidence,
                line_number=index + 1,
                context=build_context(lines, index),
                pcr_category=current_category,
                category_confidence=category_confidence,
            )
            return entry, name
        return None

    def _suggest_categories(
        self,
        entries: Sequence[ParsedMaterialEntry],
        names: Sequence[str],
    ) -> None:
        for entry, name in zip(entries, names, strict=True):
            if entry.material is None or entry.pcr_category is not None:
                continue
            category = self._categorizer.suggest_for_material(name, entry.material.category)
            if category is not None:
                entry.pcr_category = category
                entry.category_confidence = SUGGESTED_CATEGORY_CONFIDENCE


def merge_documents(
    documents: Sequence[ParsedDocument],
    displacement: str | float | None = None,
) -> ParsedDocument:
    """Combine *documents* into a single analysis document.

    Metadata comes from the first document, except that ``source`` lists
    every source. An explicit *displacement* overrides the metadata value.
    """
    entries = [entry.model_copy(deep=True) for doc in documents for entry in doc.materials]

    base = documents[0].metadata if documents else DocumentMetadata(source="")
    updates: dict[str, str] = {"source": ", ".join(doc.metadata.source for doc in documents)}
    if displacement is not None:
        updates["displacement"] = str(displacement)
    metadata = base.model_copy(update=updates)

    return ParsedDocument(file_name=MERGED_FILE_NAME, materials=entries, metadata=metadata)
