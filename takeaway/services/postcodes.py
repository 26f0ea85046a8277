"""
UK Postcode Helpers

Canonicalization and format validation for UK-style postcodes. Both helpers
are pure and never raise: malformed input simply normalizes to whatever is
left after stripping, and fails validation.

Example:
    >>> normalize_uk_postcode(" wf94py ")
    'WF9 4PY'
    >>> is_valid_uk_postcode_format("WF9 4PY")
    True
"""

import re
from typing import Optional

UK_POSTCODE_PATTERN = re.compile(
    r"^[A-Z]{1,2}[0-9][0-9A-Z]?\s?[0-9][A-Z]{2}$",
    re.IGNORECASE,
)

_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")

# Length of the inward code ("4PY" in "WF9 4PY")
INWARD_CODE_LENGTH = 3


def normalize_uk_postcode(raw: Optional[str]) -> str:
    """
    Normalize a raw postcode to ``OUTWARD INWARD`` form.

    Upper-cases the input and strips everything that is not a letter or a
    digit. Fewer than five characters are returned as-is (no space inserted);
    otherwise a single space goes before the last three characters.

    Args:
        raw: User-supplied postcode, possibly ``None``

    Returns:
        str: Normalized postcode
    """
    stripped = _NON_ALPHANUMERIC.sub("", (raw or "").upper())
    if len(stripped) < 5:
        return stripped
    return f"{stripped[:-INWARD_CODE_LENGTH]} {stripped[-INWARD_CODE_LENGTH:]}"


def is_valid_uk_postcode_format(postcode: Optional[str]) -> bool:
    """Check a postcode against the UK outward/inward grammar."""
    if not isinstance(postcode, str):
        return False
    return UK_POSTCODE_PATTERN.fullmatch(postcode) is not None
