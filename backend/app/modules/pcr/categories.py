"""PCR macro-group taxonomy and rule-based category classification.

The taxonomy is an ordered tuple: every lookup here is a first-match-wins
scan, so declaration order decides ties.
"""

from __future__ import annotations

import re

from app.core.logging import get_logger
from app.modules.pcr.schemas import PCRCategory

logger = get_logger(__name__)

PCR_CATEGORIES: tuple[PCRCategory, ...] = (
    PCRCategory(
        id="hull_structures",
        code="HS",
        name="Hull and Structures",
        description="Main external surfaces such as hull, decks with necessaries structures.",
        examples=(
            "Hull",
            "deck",
            "superstructure",
            "structures",
            "hull appendages",
            "masts",
            "rollbars",
            "equipment bases",
            "scafo",
            "ponte",
            "sovrastruttura",
        ),
    ),
    PCRCategory(
        id="machinery_propulsion",
        code="MP",
        name="Machinery and Propulsion",
        description="All elements needed to move the boat and to produce energy on board.",
        examples=(
            "Main propulsion",
            "energy generation",
            "steering system",
            "maneuvering thrusters",
            "stabilizing system",
            "motore",
            "propulsione",
            "generatore",
            "timone",
        ),
    ),
    PCRCategory(
        id="ship_systems",
        code="SS",
        name="Ship Systems",
        description="System essential for navigation and for vessel safety.",
        examples=(
            "Fuel oil system",
            "bilge system",
            "black and grey water system",
            "fire-fighting system",
            "fire extinguishing system",
            "sea water system",
            "exhaust gas system",
            "heat exchange system",
            "air ventilation system",
            "refrigeration system",
            "waste oil and sludge system",
            "ballast system",
            "lubricating oil system",
            "scupper system",
        ),
    ),
    PCRCategory(
        id="electrical_electronics",
        code="SE",
        name="Ship Electrical Systems and Electronics",
        description="Electrical system essential for navigation and for vessel safety.",
        examples=(
            "Fire detection system",
            "navigation system",
            "communication system",
            "dynamic positioning system",
            "cathodic protection",
            "cathodic antifouling system",
            "electrical",
            "electronics",
            "elettrico",
        ),
    ),
    PCRCategory(
        id="insulation_fitting",
        code="IS",
        name="Insulation and Fitting Structures",
        description="Internal surfaces coatings.",
        examples=(
            "Fire and noise insulation",
            "vibration control system",
            "floor system",
            "ceiling system",
            "wall system",
            "insulation",
            "isolamento",
            "rivestimento",
            "pavimento",
            "soffitto",
        ),
    ),
    PCRCategory(
        id="deck_machinery",
        code="DE",
        name="Deck Machinery and Equipment",
        description=(
            "Groups of components installed on external areas needed for "
            "navigation and safety of the boat."
        ),
        examples=(
            "Mooring equipment",
            "navigation lights",
            "door and hatches",
            "windows and portholes",
            "ladders and gangways",
            "shell doors",
            "lifts",
            "cranes",
            "tender",
            "life and fire appliances",
            "deck outfitting",
            "technical area outfitting",
            "rigging and sailing equipment",
        ),
    ),
    PCRCategory(
        id="paintings",
        code="PA",
        name="Paintings",
        description="Surfaces treatment.",
        examples=(
            "Varnish",
            "paint",
            "gelcoat",
            "antifouling paint",
            "filler",
            "fairing compound",
            "vernice",
            "pittura",
            "antivegetativa",
        ),
    ),
)

_CODES_ALTERNATION = "|".join(c.code for c in PCR_CATEGORIES)
_NAMES_ALTERNATION = "|".join(re.escape(c.name) for c in PCR_CATEGORIES)

# "HS – Hull" / "pa-Paintings": short code, dash (hyphen or en dash), label.
PCR_CODE_PATTERN = re.compile(rf"^({_CODES_ALTERNATION})\s*[–-]\s*(.+)", re.IGNORECASE)
# The whole line is a full macro-group name.
PCR_NAME_PATTERN = re.compile(rf"^({_NAMES_ALTERNATION})$", re.IGNORECASE)

# Ordered keyword groups for the material heuristic, first hit wins.
# The structural group additionally requires a hull/structure hint.
_STRUCTURAL_MATERIALS = ("steel", "aluminum", "grp")
_STRUCTURAL_HINTS = ("hull", "structure")
_MATERIAL_KEYWORD_GROUPS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("paint", "coating"), "paintings"),
    (("electrical", "electronic"), "electrical_electronics"),
    (("machinery", "engine", "propulsion"), "machinery_propulsion"),
    (("insulation", "fitting"), "insulation_fitting"),
    (("deck", "equipment"), "deck_machinery"),
    (("system",), "ship_systems"),
)


class PCRCategorizer:
    """Classifies free text into one of the PCR macro-groups.

    Usage::

        categorizer = PCRCategorizer()
        category = categorizer.identify_category("bilge system piping")
    """

    def __init__(self, categories: tuple[PCRCategory, ...] = PCR_CATEGORIES) -> None:
        self._categories = categories
        self._by_id = {c.id: c for c in categories}
        self._by_code = {c.code.upper(): c for c in categories}
        self._by_name = {c.name.lower(): c for c in categories}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def all(self) -> list[PCRCategory]:
        return list(self._categories)

    def get_by_id(self, category_id: str) -> PCRCategory | None:
        return self._by_id.get(category_id)

    def get_by_code(self, code: str) -> PCRCategory | None:
        return self._by_code.get(code.strip().upper())

    def get_by_name(self, name: str) -> PCRCategory | None:
        return self._by_name.get(name.strip().lower())

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def match_header(self, line: str) -> PCRCategory | None:
        """Return the category announced by a header line, if any.

        Recognises ``"<CODE> – <label>"`` and lines consisting solely of a
        full macro-group name.
        """
        code_match = PCR_CODE_PATTERN.match(line)
        if code_match:
            category = self.get_by_code(code_match.group(1))
            if category is not None:
                return category

        name_match = PCR_NAME_PATTERN.match(line)
        if name_match:
            return self.get_by_name(name_match.group(1))

        return None

    def identify_category(self, text: str) -> PCRCategory | None:
        """Identify the macro-group mentioned in *text*.

        First pass: the text contains a category name or code. Second pass:
        the text contains an example phrase, or an example phrase contains
        the whole text.
        """
        lowered = text.lower()

        for category in self._categories:
            if category.name.lower() in lowered or category.code.lower() in lowered:
                return category

        for category in self._categories:
            for example in category.examples:
                example_lowered = example.lower()
                if example_lowered in lowered or lowered in example_lowered:
                    return category

        return None

    def suggest_for_material(
        self,
        material_name: str,
        material_category: str,
    ) -> PCRCategory | None:
        """Coarse macro-group guess from a catalog material's name and label."""
        text = f"{material_name} {material_category}".lower()

        if any(term in text for term in _STRUCTURAL_MATERIALS) and any(
            hint in text for hint in _STRUCTURAL_HINTS
        ):
            return self.get_by_id("hull_structures")

        for keywords, category_id in _MATERIAL_KEYWORD_GROUPS:
            if any(keyword in text for keyword in keywords):
                return self.get_by_id(category_id)

        logger.debug("no_material_category_suggestion", material=material_name)
        return None
