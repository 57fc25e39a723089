"""
Roster Names Module - Identity Normalization and Validation

RESPONSIBILITIES:
- Identity keys (trim + lowercase + single-space)
- Display names (title case per whitespace token)
- Name validation (the single gate before text enters the roster)

ALPHABET:
Plain Latin letters plus the Bosnian/Croatian/Serbian set
(Č Ć Đ Š Ž and their lowercase forms).

ISOLATION:
- No Discord dependencies
- Pure functions, total over any string input
"""

import re
from dataclasses import dataclass
from typing import Optional

LETTERS = "A-Za-zČĆĐŠŽčćđšž"

_HAS_LETTER = re.compile(f"[{LETTERS}]")
_ALLOWED = re.compile(rf"[{LETTERS}\s\-]+")

REASON_EMPTY = "Enter a first and/or last name."
REASON_NO_LETTERS = "Name must contain letters."
REASON_BAD_CHARACTERS = "Invalid name (numbers and special characters are not allowed)."
REASON_HYPHENS = "Invalid name (check the hyphens)."


@dataclass(frozen=True)
class NameCheck:
    """Outcome of validate_name(); reason is empty when valid"""
    valid: bool
    reason: str = ""


def _collapse_whitespace(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def normalize_key(text: Optional[str]) -> str:
    """
    Build the identity key for a name.

    "  Ana   LOVRIĆ " and "ana lovrić" map to the same key, so they are
    the same participant.
    """
    return _collapse_whitespace(text).lower()


def to_display_name(text: Optional[str]) -> str:
    """Title-case each space separated token ("ana-marija ČOLIĆ" -> "Ana-marija Čolić")"""
    tokens = []
    for word in _collapse_whitespace(text).split(" "):
        lowered = word.lower()
        tokens.append(lowered[:1].upper() + lowered[1:])
    return " ".join(tokens)


def validate_name(text: Optional[str]) -> NameCheck:
    """
    Validate raw input before it is added to the roster.

    CHECK ORDER:
    1. Blank input
    2. No letter at all
    3. Anything other than letters, whitespace or hyphen
    4. Double hyphen
    """
    s = (text or "").strip()

    if not s:
        return NameCheck(False, REASON_EMPTY)

    if not _HAS_LETTER.search(s):
        return NameCheck(False, REASON_NO_LETTERS)

    if not _ALLOWED.fullmatch(s):
        return NameCheck(False, REASON_BAD_CHARACTERS)

    if "--" in s:
        return NameCheck(False, REASON_HYPHENS)

    return NameCheck(True, "")


__all__ = [
    'LETTERS', 'NameCheck', 'normalize_key', 'to_display_name', 'validate_name',
    'REASON_EMPTY', 'REASON_NO_LETTERS', 'REASON_BAD_CHARACTERS', 'REASON_HYPHENS',
]
