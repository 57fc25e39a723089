"""
Secret Santa Roster Module - Participants and Roster State

RESPONSIBILITIES:
- Participant record (identity key + display name)
- Stable first-wins deduplication
- RosterState: the in-memory roster and last pairing result

DEDUP RULE:
Two participants with the same key are the same person. The roster never
holds both; the earliest entry is kept and insertion order is preserved.

ISOLATION:
- No Discord dependencies, no file I/O
- The cog persists state after each successful mutation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

from .roster_names import NameCheck, normalize_key, to_display_name, validate_name

if TYPE_CHECKING:
    from .secret_santa_pairing import PairingResult


@dataclass(frozen=True)
class Participant:
    key: str
    display_name: str

    @classmethod
    def from_text(cls, text: str) -> "Participant":
        """Build a participant from raw (already validated) input"""
        return cls(key=normalize_key(text), display_name=to_display_name(text))

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Participant"]:
        """
        Rebuild a participant from persisted JSON.

        Persisted data is untrusted: anything that is not a dict or has no
        usable key returns None. A missing display name is derived from the key.
        """
        if not isinstance(data, dict):
            return None

        raw_key = data.get("key")
        if not isinstance(raw_key, str):
            return None

        key = normalize_key(raw_key)
        if not key:
            return None

        display_name = data.get("displayName")
        if not isinstance(display_name, str) or not display_name.strip():
            display_name = to_display_name(key)

        return cls(key=key, display_name=display_name)

    def to_dict(self) -> dict:
        return {"key": self.key, "displayName": self.display_name}


def _entry_key(entry: Any) -> Optional[str]:
    if entry is None:
        return None
    if isinstance(entry, dict):
        key = entry.get("key")
    else:
        key = getattr(entry, "key", None)
    # Non-string keys count as keyless
    if not isinstance(key, str) or not key:
        return None
    return key


def deduplicate(entries: Optional[Iterable[Any]]) -> list:
    """
    Keep the first occurrence per key, in original order.

    Drops None and keyless entries. Works on Participants and on raw
    {"key": ...} dicts alike.
    """
    seen = set()
    unique = []

    for entry in entries or []:
        key = _entry_key(entry)
        if key is None or key in seen:
            continue
        seen.add(key)
        unique.append(entry)

    return unique


class RosterState:
    """
    Roster plus the last generated pairing result.

    Owned by the cog (the composition root); every read goes through
    deduplicate() because the list may have been restored from disk.
    """

    def __init__(self, participants: Optional[Iterable[Participant]] = None,
                 last_result: Optional["PairingResult"] = None):
        self._participants: List[Participant] = deduplicate(participants)
        self.last_result = last_result

    @property
    def participants(self) -> List[Participant]:
        return deduplicate(self._participants)

    def __len__(self) -> int:
        return len(self.participants)

    def add(self, raw_text: str) -> NameCheck:
        """
        Validate and append a participant.

        Returns the validation outcome; nothing is mutated when it is invalid.
        A stored result is left untouched here (only remove/clear discard it).
        """
        check = validate_name(raw_text)
        if not check.valid:
            return check

        self._participants.append(Participant.from_text(raw_text))
        self._participants = deduplicate(self._participants)
        return check

    def remove(self, key: str) -> int:
        """
        Remove every entry matching key and discard the last result.

        The roster changed (or was expected to), so a stale pairing could
        reference someone who is gone. Returns how many entries were removed.
        """
        key = normalize_key(key)
        before = len(self._participants)
        self._participants = [p for p in self._participants if p.key != key]
        self.last_result = None
        return before - len(self._participants)

    def clear_all(self):
        self._participants = []
        self.last_result = None

    def record_result(self, result: "PairingResult"):
        self.last_result = result

    def contains(self, key: str) -> bool:
        key = normalize_key(key)
        return any(p.key == key for p in self._participants)


__all__ = ['Participant', 'deduplicate', 'RosterState']
