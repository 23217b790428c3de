"""Unit tests for the line-oriented document parser."""

from __future__ import annotations

import pytest

from app.modules.documents.parser import (
    DocumentParser,
    build_context,
    clean_material_name,
    is_table_header,
    merge_documents,
    parse_quantity,
)
from app.modules.documents.schemas import DocumentMetadata, ParsedDocument
from app.modules.materials.catalog import MaterialsCatalog


@pytest.fixture
def parser(catalog: MaterialsCatalog) -> DocumentParser:
    return DocumentParser(catalog)


class TestHelpers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("12.5", 12.5),
            ("1,2", 1.2),
            ("12,50", 12.5),
            ("2,000", 2000.0),
            ("12,345", 12345.0),
            ("1234,567", 1234.567),
            ("0", None),
            ("0,0", None),
        ],
    )
    def test_parse_quantity(self, raw: str, expected: float | None) -> None:
        assert parse_quantity(raw) == expected

    def test_clean_material_name(self) -> None:
        assert clean_material_name("GRP  hull panel:") == "GRP hull panel"
        assert clean_material_name("Steel (AISI-316) *") == "Steel (AISI-316)"

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("Macrogruppo Materiale Peso Unità", True),
            ("Material / Weight", True),
            ("Material 12 t", False),
            ("Stainless steel", False),
        ],
    )
    def test_is_table_header(self, line: str, expected: bool) -> None:
        assert is_table_header(line) is expected

    def test_build_context_clamps_at_edges(self) -> None:
        lines = ["a", "b", "c", "d", "e", "f"]
        assert build_context(lines, 0) == "a | b | c"
        assert build_context(lines, 3) == "b | c | d | e | f"
        assert build_context(lines, 5) == "d | e | f"


class TestParseText:
    @pytest.mark.asyncio
    async def test_single_tonne_line(self, parser: DocumentParser) -> None:
        document = await parser.parse_text("Stainless steel 12.5 t", "bom.txt")

        assert len(document.materials) == 1
        entry = document.materials[0]
        assert entry.quantity == 12500.0
        assert entry.unit == "kg"
        assert entry.material is not None
        assert entry.material.name == "Stainless steel"
        assert entry.confidence == 1.0
        assert entry.line_number == 1
        assert entry.context == "Stainless steel 12.5 t"
        assert entry.pcr_category is None
        assert entry.category_confidence == 0.0

    @pytest.mark.asyncio
    async def test_header_sets_category_for_following_lines(self, parser: DocumentParser) -> None:
        document = await parser.parse_text("HS – Hull\nGRP hull panel: 2,000 kg", "bom.txt")

        assert len(document.materials) == 1
        entry = document.materials[0]
        assert entry.pcr_category is not None
        assert entry.pcr_category.id == "hull_structures"
        assert entry.category_confidence == 0.9
        assert entry.quantity == 2000.0
        assert entry.material is not None
        assert entry.material.name == "GRP"
        assert entry.confidence == 0.8
        assert entry.line_number == 2
        assert entry.context == "HS – Hull | GRP hull panel: 2,000 kg"

    @pytest.mark.asyncio
    async def test_category_switches_at_next_header(self, parser: DocumentParser) -> None:
        text = "HS – Hull\nMild steel 40 t\nPA – Paintings\nAntifouling paint 800 kg\n"
        document = await parser.parse_text(text, "bom.txt")

        assert [e.pcr_category.id for e in document.materials if e.pcr_category] == [
            "hull_structures",
            "paintings",
        ]

    @pytest.mark.asyncio
    async def test_unit_defaults_to_tonnes(self, parser: DocumentParser) -> None:
        document = await parser.parse_text("Teak 2", "bom.txt")

        entry = document.materials[0]
        assert entry.quantity == 2000.0
        assert entry.material is None
        assert entry.confidence == 0.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("line", "quantity_kg"),
        [
            ("Mild steel 1,5 t", 1500.0),
            ("Mild steel 12,50 T", 12500.0),
            ("Primary aluminium 3 tonnes", 3000.0),
            ("Primary aluminium 3 tons", 3000.0),
            ("Copper: 250 kg", 250.0),
        ],
    )
    async def test_quantity_forms(
        self,
        parser: DocumentParser,
        line: str,
        quantity_kg: float,
    ) -> None:
        document = await parser.parse_text(line, "bom.txt")
        assert [e.quantity for e in document.materials] == [pytest.approx(quantity_kg)]

    @pytest.mark.asyncio
    async def test_noise_and_headers_skipped(self, parser: DocumentParser) -> None:
        text = (
            "Material list\n"
            "Macrogruppo Materiale Peso Unità\n"
            "ab\n"
            "\n"
            "Copper 0 t\n"
            "Drawing rev. B\n"
            "Mild steel 4 t\n"
        )
        document = await parser.parse_text(text, "bom.txt")

        assert [e.original_text for e in document.materials] == ["Mild steel 4 t"]
        assert document.materials[0].line_number == 7

    @pytest.mark.asyncio
    async def test_material_suggestion_without_header(self, parser: DocumentParser) -> None:
        document = await parser.parse_text("GRP hull panel 2 t", "bom.txt")

        entry = document.materials[0]
        assert entry.pcr_category is not None
        assert entry.pcr_category.id == "hull_structures"
        assert entry.category_confidence == 0.6

    @pytest.mark.asyncio
    async def test_no_suggestion_when_document_has_headers(self, parser: DocumentParser) -> None:
        text = "GRP hull panel 2 t\nPA – Paintings\nAntifouling paint 1 t\n"
        document = await parser.parse_text(text, "bom.txt")

        first, second = document.materials
        assert first.material is not None
        assert first.pcr_category is None
        assert first.category_confidence == 0.0
        assert second.pcr_category is not None
        assert second.pcr_category.id == "paintings"
        assert second.category_confidence == 0.9

    @pytest.mark.asyncio
    async def test_metadata_source_is_file_stem(self, parser: DocumentParser) -> None:
        document = await parser.parse_text("", "Cantiere_Nord.txt")

        assert document.metadata.source == "Cantiere_Nord"
        assert document.materials == []
        assert document.total_weight == 0

    @pytest.mark.asyncio
    async def test_total_weight_tracks_entries(self, parser: DocumentParser) -> None:
        text = "HS – Hull\nMild steel 40 t\nGRP 3 t\nTeak 0,5 t\n"
        document = await parser.parse_text(text, "bom.txt")

        assert document.total_weight == pytest.approx(43500.0)
        assert document.total_weight == sum(e.quantity for e in document.materials)

        document.materials[0].quantity = 1000.0
        document.materials.pop()
        assert document.total_weight == pytest.approx(4000.0)

    @pytest.mark.asyncio
    async def test_category_breakdown(self, parser: DocumentParser) -> None:
        text = "HS – Hull\nMild steel 40 t\nGRP 3 t\nPA – Paintings\nAntifouling paint 1 t\n"
        document = await parser.parse_text(text, "bom.txt")

        breakdown = document.category_breakdown
        assert set(breakdown) == {"hull_structures", "paintings"}
        assert breakdown["hull_structures"].total_weight == pytest.approx(43000.0)
        assert len(breakdown["hull_structures"].materials) == 2
        assert breakdown["paintings"].total_weight == pytest.approx(1000.0)


class TestParseFile:
    @pytest.mark.asyncio
    async def test_csv_upload(self, parser: DocumentParser) -> None:
        payload = (
            "Macrogruppo;Materiale;Peso;Unità\n"
            "HS – Hull;Stainless steel;12,5;t\n"
            "PA – Paintings;Antifouling paint;800;kg\n"
        ).encode()

        document = await parser.parse_file("Cantiere_A.csv", payload)

        assert document.file_name == "Cantiere_A.csv"
        assert document.metadata.source == "Cantiere_A"
        assert [(e.material.name, e.quantity) for e in document.materials if e.material] == [
            ("Stainless steel", 12500.0),
            ("Antifouling paint", 800.0),
        ]
        assert [e.pcr_category.code for e in document.materials if e.pcr_category] == [
            "HS",
            "PA",
        ]


class TestMergeDocuments:
    @pytest.mark.asyncio
    async def test_merge_concatenates_entries(self, parser: DocumentParser) -> None:
        first = await parser.parse_text("Mild steel 40 t", "Cantiere_A.txt")
        second = await parser.parse_text("GRP 3 t\nTeak 1 t", "Cantiere_B.txt")

        merged = merge_documents([first, second], displacement=2400)

        assert merged.file_name == "Combined Analysis"
        assert merged.metadata.source == "Cantiere_A, Cantiere_B"
        assert merged.metadata.displacement == "2400"
        assert len(merged.materials) == 3
        assert merged.total_weight == pytest.approx(44000.0)

    @pytest.mark.asyncio
    async def test_merge_copies_entries(self, parser: DocumentParser) -> None:
        original = await parser.parse_text("Mild steel 40 t", "Cantiere_A.txt")
        merged = merge_documents([original])

        merged.materials[0].quantity = 1.0
        assert original.materials[0].quantity == 40000.0

    def test_merge_keeps_first_metadata(self) -> None:
        first = ParsedDocument(
            file_name="a.txt",
            metadata=DocumentMetadata(source="A", ship_type="Yacht", displacement="1,200 t"),
        )
        second = ParsedDocument(file_name="b.txt", metadata=DocumentMetadata(source="B"))

        merged = merge_documents([first, second])

        assert merged.metadata.ship_type == "Yacht"
        assert merged.metadata.displacement == "1,200 t"

    def test_merge_nothing(self) -> None:
        merged = merge_documents([])
        assert merged.materials == []
        assert merged.metadata.source == ""
