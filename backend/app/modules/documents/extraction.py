"""Raw text extraction from uploaded bill-of-materials files.

Dispatches on the file extension:

- ``.csv``: the shipyard house format ``Macrogroup;Material;Weight;Unit``
  (semicolon separated, comma decimals), rewritten as header and
  ``"<name> <weight> <unit>"`` lines;
- ``.xlsx`` / ``.xls``: best-effort string scavenging, see
  :mod:`app.modules.documents.binary_strings`;
- ``.txt`` and anything else: decoded as UTF-8 text.
"""

from __future__ import annotations

import re
from pathlib import Path

from app.core.logging import get_logger
from app.modules.documents.binary_strings import scavenge_spreadsheet_text

logger = get_logger(__name__)

_CSV_HEADER_KEYWORDS = ("macrogruppo", "materiale", "peso", "material", "weight", "category")
_CSV_DEFAULT_UNIT = "t"
_SPREADSHEET_SUFFIXES = (".xlsx", ".xls")
_DIGIT = re.compile(r"[0-9]")


class ExtractionError(RuntimeError):
    """Raised when a file's content cannot be read at all."""

    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        super().__init__(f"Failed to extract text from {file_name}: {reason}")


def extract_text(file_name: str, content: bytes | str) -> str:
    """Return the text content of *file_name* ready for line parsing.

    Raises:
        ExtractionError: If *content* is neither bytes nor text.
    """
    if not isinstance(content, bytes | bytearray | str):
        raise ExtractionError(file_name, f"unsupported payload type {type(content).__name__}")

    suffix = Path(file_name).suffix.lower()

    if suffix in _SPREADSHEET_SUFFIXES and not isinstance(content, str):
        return scavenge_spreadsheet_text(bytes(content))

    text = _decode(content)
    if suffix == ".csv":
        return parse_semicolon_csv(text)
    return text


def read_document(path: str | Path) -> str:
    """Read *path* from disk and extract its text.

    Raises:
        ExtractionError: If the file cannot be read.
    """
    source = Path(path)
    try:
        content = source.read_bytes()
    except OSError as exc:
        logger.error("document_read_failed", path=str(source), error=str(exc))
        raise ExtractionError(source.name, str(exc)) from exc
    return extract_text(source.name, content)


def parse_semicolon_csv(text: str) -> str:
    """Rewrite semicolon-separated rows as parser-friendly lines.

    Row layout: category label, material name, weight, optional unit
    (default ``t``). A category line is emitted whenever the label changes.
    Rows with fewer than three fields are dropped.
    """
    lines: list[str] = []
    current_category = ""
    first_row = True

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        if first_row:
            first_row = False
            if _is_csv_header(line):
                continue

        columns = [column.replace('"', "").strip() for column in line.split(";")]
        if len(columns) < 3:
            continue

        category, name, weight = columns[0], columns[1], columns[2]
        unit = columns[3] if len(columns) > 3 and columns[3] else _CSV_DEFAULT_UNIT

        if category != current_category:
            current_category = category
            lines.append(category)

        lines.append(f"{name} {weight.replace(',', '.', 1)} {unit}")

    return "".join(f"{line}\n" for line in lines)


def _is_csv_header(line: str) -> bool:
    lowered = line.lower()
    return any(keyword in lowered for keyword in _CSV_HEADER_KEYWORDS) and not _DIGIT.search(line)


def _decode(content: bytes | bytearray | str) -> str:
    if isinstance(content, str):
        return content
    return bytes(content).decode("utf-8-sig", errors="replace")
