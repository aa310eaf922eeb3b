"""Reference range parsing and value classification for lab results.

Lab reports express reference intervals in a handful of shapes: ``"30-100"``,
``"0.40 – 4.50"``, ``"< 12.9"``, ``"Optimal <90"``, ``">= 40"``. Only the
numeric bounds are recovered; qualifiers such as "Optimal" are ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_NUMBER = r"\d+(?:\.\d+)?"
_BETWEEN_RE = re.compile(rf"({_NUMBER})\s*-\s*({_NUMBER})")
_UPPER_RE = re.compile(rf"(?:<=?|≤)\s*({_NUMBER})")
_LOWER_RE = re.compile(rf"(?:>=?|≥)\s*({_NUMBER})")


@dataclass(frozen=True)
class ReferenceRange:
    """Numeric bounds of a reference interval. Either bound may be open."""

    low: float | None = None
    high: float | None = None

    def classify(self, value: float) -> str:
        """Return "low", "high" or "normal" for a value against these bounds."""
        if self.low is not None and value < self.low:
            return "low"
        if self.high is not None and value > self.high:
            return "high"
        return "normal"


def parse_reference_range(text: str | None) -> ReferenceRange | None:
    """Parse a free-text reference range into numeric bounds.

    Returns:
        The parsed range, or None when no bound can be recovered.
    """
    if not text:
        return None
    cleaned = text.replace("–", "-").replace("—", "-").replace(",", "")

    match = _BETWEEN_RE.search(cleaned)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
        if low > high:
            low, high = high, low
        return ReferenceRange(low=low, high=high)

    match = _UPPER_RE.search(cleaned)
    if match:
        return ReferenceRange(high=float(match.group(1)))

    match = _LOWER_RE.search(cleaned)
    if match:
        return ReferenceRange(low=float(match.group(1)))

    return None


def compare_to_range(value: float, reference_range: str | None) -> str | None:
    """Classify a value against its reference range text.

    Returns:
        "low", "high" or "normal", or None when the range cannot be parsed.
    """
    parsed = parse_reference_range(reference_range)
    if parsed is None:
        return None
    return parsed.classify(value)
