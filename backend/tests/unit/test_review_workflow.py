"""Unit tests for the review workflow over parsed entries."""

from __future__ import annotations

import pytest

from app.modules.documents.schemas import DocumentMetadata, ParsedDocument, ParsedMaterialEntry
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.materials.schemas import Material
from app.modules.materials.validation import MaterialValidationError
from app.modules.pcr.categories import PCRCategorizer
from app.modules.review.workflow import ReviewSession

_STEEL = Material(id="mat_mild_steel", name="Mild steel", category="Metals", gwp_factor=1.85)
_GRP = Material(id="mat_grp", name="GRP", category="Composites", gwp_factor=8.1)


def _document(source: str, *entries: ParsedMaterialEntry) -> ParsedDocument:
    return ParsedDocument(
        file_name=f"{source}.txt",
        materials=list(entries),
        metadata=DocumentMetadata(source=source),
    )


@pytest.fixture
def documents() -> list[ParsedDocument]:
    return [
        _document(
            "Cantiere_A",
            ParsedMaterialEntry(
                original_text="Mild steel 40 t", material=_STEEL, quantity=40_000, confidence=1.0
            ),
            ParsedMaterialEntry(
                original_text="GRP hull panel 3 t", material=_GRP, quantity=3_000, confidence=0.8
            ),
        ),
        _document(
            "Cantiere_B",
            ParsedMaterialEntry(original_text="Teak 1 t", quantity=1_000),
            ParsedMaterialEntry(
                original_text="Mild steel plate 2 t",
                material=_STEEL,
                quantity=2_000,
                confidence=0.9,
            ),
        ),
    ]


@pytest.fixture
def session(documents: list[ParsedDocument]) -> ReviewSession:
    return ReviewSession.from_documents(documents)


class TestInitialState:
    def test_entries_remember_their_document(self, session: ReviewSession) -> None:
        assert [e.document_index for e in session.entries] == [0, 0, 1, 1]

    def test_only_confident_matches_start_validated(self, session: ReviewSession) -> None:
        assert [e.is_validated for e in session.entries] == [True, False, False, True]
        assert not any(e.user_modified for e in session.entries)


class TestEdits:
    def test_select_material(self, session: ReviewSession) -> None:
        entry = session.select_material(2, _GRP)

        assert entry.material == _GRP
        assert entry.confidence == 1.0
        assert entry.is_validated is True
        assert entry.user_modified is True

    def test_select_category(self, session: ReviewSession) -> None:
        paintings = PCRCategorizer().get_by_id("paintings")
        assert paintings is not None

        entry = session.select_category(0, paintings)

        assert entry.pcr_category == paintings
        assert entry.category_confidence == 1.0
        assert entry.user_modified is True

    def test_change_quantity_in_tonnes(self, session: ReviewSession) -> None:
        entry = session.change_quantity(1, 12.5)

        assert entry.quantity == 12_500
        assert entry.user_modified is True

    def test_negative_quantity_rejected(self, session: ReviewSession) -> None:
        with pytest.raises(ValueError):
            session.change_quantity(1, -1)
        assert session.entries[1].quantity == 3_000

    def test_toggle_and_validate(self, session: ReviewSession) -> None:
        assert session.toggle_validation(0).is_validated is False
        assert session.toggle_validation(0).is_validated is True
        assert session.validate(2).is_validated is True
        assert session.validate(2).is_validated is True

    def test_remove(self, session: ReviewSession) -> None:
        removed = session.remove(0)

        assert removed.original_text == "Mild steel 40 t"
        assert len(session.entries) == 3

    @pytest.mark.parametrize("index", [-1, 4])
    def test_out_of_range_index(self, session: ReviewSession, index: int) -> None:
        with pytest.raises(IndexError):
            session.validate(index)


class TestCustomMaterial:
    @pytest.mark.asyncio
    async def test_added_and_assigned(
        self,
        session: ReviewSession,
        catalog: MaterialsCatalog,
    ) -> None:
        material = await session.add_custom_material(
            2,
            catalog,
            {"name": "Teak", "category": "Wood", "gwp_factor": 0.9, "aliases": ["Tectona"]},
        )

        assert material.id.startswith("custom_")
        assert session.entries[2].material == material
        assert session.entries[2].user_modified is True
        assert await catalog.get_by_id(material.id) == material

    @pytest.mark.asyncio
    async def test_every_violation_listed(
        self,
        session: ReviewSession,
        catalog: MaterialsCatalog,
    ) -> None:
        with pytest.raises(MaterialValidationError) as exc_info:
            await session.add_custom_material(2, catalog, {"name": " ", "gwp_factor": 0})

        assert exc_info.value.errors == [
            "Material name required",
            "Category required",
            "GWP factor must be greater than 0",
        ]
        assert session.entries[2].material is None

    @pytest.mark.asyncio
    async def test_bad_index_adds_nothing(
        self,
        session: ReviewSession,
        catalog: MaterialsCatalog,
    ) -> None:
        before = len(await catalog.get_all())

        with pytest.raises(IndexError):
            await session.add_custom_material(
                9, catalog, {"name": "Teak", "category": "Wood", "gwp_factor": 0.9}
            )

        assert len(await catalog.get_all()) == before


class TestQueries:
    def test_stats(self, session: ReviewSession) -> None:
        session.change_quantity(2, 1.5)

        stats = session.stats()

        assert stats.total == 4
        assert stats.identified == 3
        assert stats.categorized == 0
        assert stats.validated == 2
        assert stats.user_modified == 1

    def test_filter_by_text_or_material_name(self, session: ReviewSession) -> None:
        assert [i for i, _ in session.filter("STEEL")] == [0, 3]
        assert [i for i, _ in session.filter("grp")] == [1]
        assert [i for i, _ in session.filter()] == [0, 1, 2, 3]

    def test_filter_only_modified(self, session: ReviewSession) -> None:
        session.select_material(2, _STEEL)

        assert [i for i, _ in session.filter(only_modified=True)] == [2]
        assert session.filter("grp", only_modified=True) == []


class TestComplete:
    def test_documents_rebuilt_after_removal(
        self,
        session: ReviewSession,
        documents: list[ParsedDocument],
    ) -> None:
        session.remove(1)
        session.change_quantity(1, 5)

        reviewed = session.complete()

        assert [d.metadata.source for d in reviewed] == ["Cantiere_A", "Cantiere_B"]
        assert [e.original_text for e in reviewed[0].materials] == ["Mild steel 40 t"]
        assert [e.original_text for e in reviewed[1].materials] == [
            "Teak 1 t",
            "Mild steel plate 2 t",
        ]
        assert reviewed[1].total_weight == 7_000
        assert documents[1].total_weight == 3_000

    def test_reviewed_entries_are_plain_entries(self, session: ReviewSession) -> None:
        [first, _] = session.complete()
        assert type(first.materials[0]) is ParsedMaterialEntry
