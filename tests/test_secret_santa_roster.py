"""
Secret Santa Roster Test Suite

Tests participants, deduplication and RosterState mutations:
- First-wins dedup, order preserved
- add / remove / clear_all semantics
- Result invalidation (remove and clear drop it, add keeps it)

Run: python -m pytest tests/test_secret_santa_roster.py -v
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cogs.roster_names import REASON_BAD_CHARACTERS
from cogs.secret_santa_pairing import PairingResult
from cogs.secret_santa_roster import Participant, RosterState, deduplicate


def people(*names):
    return [Participant.from_text(n) for n in names]


class TestParticipant:

    def test_from_text(self):
        p = Participant.from_text("  ana   LOVRIĆ ")
        assert p.key == "ana lovrić"
        assert p.display_name == "Ana Lovrić"

    def test_to_dict_uses_stored_field_names(self):
        assert Participant("ana", "Ana").to_dict() == {"key": "ana", "displayName": "Ana"}

    def test_from_dict_rejects_garbage(self):
        for raw in (None, "ana", 5, [], {}, {"key": 5}, {"key": "   "}, {"displayName": "Ana"}):
            assert Participant.from_dict(raw) is None, raw

    def test_from_dict_renormalizes_key_and_fills_display_name(self):
        p = Participant.from_dict({"key": "  ANA   b "})
        assert p == Participant("ana b", "Ana B")

        p = Participant.from_dict({"key": "ana", "displayName": "Ana L."})
        assert p.display_name == "Ana L."


class TestDeduplicate:

    def test_keeps_first_occurrence_in_order(self):
        entries = [{"key": "a"}, {"key": "b"}, {"key": "a"}]
        assert deduplicate(entries) == [{"key": "a"}, {"key": "b"}]

    def test_first_wins_for_participants(self):
        first = Participant("ana", "Ana")
        later = Participant("ana", "ANA (duplicate)")
        result = deduplicate([first, Participant("ivo", "Ivo"), later])
        assert result == [first, Participant("ivo", "Ivo")]
        assert result[0].display_name == "Ana"

    def test_idempotent(self):
        entries = people("a", "b", "A", "c", "b")
        once = deduplicate(entries)
        assert deduplicate(once) == once
        assert [p.key for p in once] == ["a", "b", "c"]

    def test_drops_none_and_keyless(self):
        ana = Participant("ana", "Ana")
        assert deduplicate([None, {"key": ""}, {"x": 1}, ana, {"key": None}]) == [ana]

    def test_non_string_keys_are_keyless(self):
        ana = Participant("ana", "Ana")
        entries = [{"key": [1]}, {"key": {"a": 1}}, {"key": 5}, ana, {"key": [1]}]
        assert deduplicate(entries) == [ana]

    def test_empty_input(self):
        assert deduplicate([]) == []
        assert deduplicate(None) == []


class TestRosterState:

    def test_add_valid_name(self):
        roster = RosterState()
        check = roster.add("  ana   lovrić ")

        assert check.valid
        assert roster.participants == [Participant("ana lovrić", "Ana Lovrić")]
        assert len(roster) == 1

    def test_add_duplicate_keeps_first(self):
        roster = RosterState()
        roster.add("ana lovric")
        roster.add("ANA   LOVRIC")
        roster.add("Ivo")

        assert [p.key for p in roster.participants] == ["ana lovric", "ivo"]
        assert roster.participants[0].display_name == "Ana Lovric"

    def test_add_invalid_does_not_mutate(self):
        roster = RosterState(people("Ana"))
        check = roster.add("Ana2")

        assert not check.valid
        assert check.reason == REASON_BAD_CHARACTERS
        assert [p.key for p in roster.participants] == ["ana"]

    def test_add_keeps_last_result(self):
        result = PairingResult(pairs=[], unmatched=people("Ana"))
        roster = RosterState(people("Ana"), last_result=result)
        roster.add("Ivo")
        assert roster.last_result is result

    def test_remove_clears_result(self):
        roster = RosterState(people("Ana", "Ivo"), last_result=PairingResult())
        removed = roster.remove("ana")

        assert removed == 1
        assert roster.last_result is None
        assert [p.key for p in roster.participants] == ["ivo"]

    def test_remove_missing_key_still_clears_result(self):
        roster = RosterState(people("Ana"), last_result=PairingResult())
        assert roster.remove("nobody") == 0
        assert roster.last_result is None
        assert len(roster) == 1

    def test_remove_accepts_display_form(self):
        roster = RosterState(people("Ana Lovric", "Ivo"))
        assert roster.remove("  ANA  Lovric ") == 1
        assert not roster.contains("ana lovric")

    def test_clear_all(self):
        roster = RosterState(people("Ana", "Ivo"), last_result=PairingResult())
        roster.clear_all()
        assert roster.participants == []
        assert roster.last_result is None

    def test_restored_duplicates_are_collapsed(self):
        roster = RosterState([Participant("ana", "Ana"), Participant("ana", "Other"), None])
        assert roster.participants == [Participant("ana", "Ana")]

    def test_participants_is_a_copy(self):
        roster = RosterState(people("Ana"))
        roster.participants.append(Participant("ivo", "Ivo"))
        assert len(roster) == 1
