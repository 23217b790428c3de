"""Best-effort text scavenging from binary spreadsheet containers.

This does not read the container format. It collects runs of printable
ASCII bytes, keeps those that look like PCR headers, material names or
plain numbers, and stitches them back into ``"<name> <weight> t"`` lines.

Known failure modes, all silent:

- compressed containers (``.xlsx`` is a zip archive) rarely expose their
  cell text, so most workbooks yield little or nothing;
- non-ASCII text (accents, en dashes) splits or drops strings;
- a material whose weight is not among the next two recovered strings is
  dropped, and a wrong nearby number can be paired with it;
- weights are always assumed to be in tonnes.
"""

from __future__ import annotations

import re

from app.core.logging import get_logger
from app.modules.pcr.categories import PCR_CODE_PATTERN, PCR_NAME_PATTERN

logger = get_logger(__name__)

_MIN_RUN_LENGTH = 2
_MAX_STRING_LENGTH = 100
# Tokens after a material name that may hold its weight.
_WEIGHT_LOOKAHEAD = 2

# Container plumbing that happens to be printable.
_METADATA_NOISE = (
    "xml",
    "rels",
    "docprops",
    "xl/",
    "theme",
    "styles",
    "sharedstrings",
    "workbook",
    "worksheet",
    "content_types",
    "app",
    "core",
    "custom",
)

_NUMBER_PATTERN = re.compile(r"^\d+([,.]\d+)?$")
_CODE_PREFIX_PATTERN = re.compile(r"^(hs|mp|ss|se|is|de|pa)\s*[–-]", re.IGNORECASE)
_MATERIAL_HINT_PATTERN = re.compile(
    r"steel|aluminum|copper|pvc|grp|paint|wood|rubber|iron|wool|composite|plastic|epoxy|"
    r"antifouling|filler|teak|rock|frp|abs|stainless|galvanized|cast|mild|alloy",
    re.IGNORECASE,
)
_USEFUL_PATTERNS = (
    _CODE_PREFIX_PATTERN,
    PCR_NAME_PATTERN,
    _MATERIAL_HINT_PATTERN,
    _NUMBER_PATTERN,
)

MATERIAL_KEYWORDS = (
    "steel",
    "aluminum",
    "aluminium",
    "copper",
    "brass",
    "bronze",
    "pvc",
    "grp",
    "paint",
    "wood",
    "rubber",
    "plastic",
    "iron",
    "wool",
    "composite",
    "alloy",
    "coating",
    "filler",
    "panel",
    "mild",
    "stainless",
    "galvanized",
    "cast",
    "epoxy",
    "antifouling",
    "teak",
    "rock",
    "frp",
    "abs",
)


def is_useful_string(value: str) -> bool:
    """Allowlist for recovered strings."""
    lowered = value.lower()
    if any(noise in lowered for noise in _METADATA_NOISE):
        return False
    if not _MIN_RUN_LENGTH <= len(value) <= _MAX_STRING_LENGTH:
        return False
    # Only the material hint pattern is unanchored.
    return any(pattern.search(value) for pattern in _USEFUL_PATTERNS)


def is_material_name(value: str) -> bool:
    lowered = value.lower()
    return any(keyword in lowered for keyword in MATERIAL_KEYWORDS)


def extract_strings(data: bytes) -> list[str]:
    """Collect printable ASCII runs that pass :func:`is_useful_string`.

    A run ends at any byte outside 32..126. The final byte of the buffer is
    never read as part of a run.
    """
    strings: list[str] = []
    current: list[str] = []

    for byte in data[:-1]:
        if 32 <= byte <= 126:
            current.append(chr(byte))
            continue
        if current:
            _keep(strings, "".join(current))
            current = []

    if current:
        _keep(strings, "".join(current))

    return strings


def reconstruct_text(strings: list[str]) -> str:
    """Rebuild parser-friendly lines from recovered strings."""
    lines: list[str] = []

    for index, value in enumerate(strings):
        if PCR_CODE_PATTERN.match(value) or PCR_NAME_PATTERN.match(value):
            lines.append(value)
            continue

        if not is_material_name(value):
            continue

        for candidate in strings[index + 1 : index + 1 + _WEIGHT_LOOKAHEAD]:
            if _NUMBER_PATTERN.match(candidate):
                lines.append(f"{value} {candidate.replace(',', '.', 1)} t")
                break

    return "".join(f"{line}\n" for line in lines)


def scavenge_spreadsheet_text(data: bytes) -> str:
    """Recover material lines from a binary spreadsheet payload."""
    strings = extract_strings(data)
    text = reconstruct_text(strings)
    logger.debug(
        "spreadsheet_strings_recovered",
        byte_count=len(data),
        string_count=len(strings),
        line_count=text.count("\n"),
    )
    return text


def _keep(strings: list[str], run: str) -> None:
    if len(run) >= _MIN_RUN_LENGTH and is_useful_string(run):
        strings.append(run.strip())
