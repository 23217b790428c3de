"""Constants for weight unit handling."""

from __future__ import annotations

KG_PER_TONNE = 1000.0

# Spellings accepted in material lines, e.g. "12,5 t" or "300 tonnes".
WEIGHT_UNIT_PATTERN = r"t|kg|tonnes?|tons?"

# Substrings that mark a free-text unit as tonne-scale.
TONNE_MARKERS = ("tonne", "ton")
