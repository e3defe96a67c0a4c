"""Text normalization shared by the duplicate guard and the storage keys."""
from typing import Optional


def normalize_key(value: Optional[str]) -> str:
    """Trim surrounding whitespace and case-fold for comparison.

    ``casefold`` is used instead of ``lower`` so that e.g. "Straße" and
    "STRASSE" compare equal.
    """
    if value is None:
        return ""
    return value.strip().casefold()
