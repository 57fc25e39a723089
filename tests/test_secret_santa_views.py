"""
Secret Santa Views Test Suite

Tests embed rendering and the roster remove buttons.

Run: python -m pytest tests/test_secret_santa_views.py -v
"""

import random
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import disnake

from cogs.secret_santa_pairing import Pair, PairingResult, generate_pairs
from cogs.secret_santa_roster import Participant
from cogs.secret_santa_views import (
    MAX_MESSAGE_CHARS, MAX_REMOVE_BUTTONS, NO_RESULT_TEXT, NOT_ENOUGH_TEXT, REMOVE_PREFIX,
    build_remove_buttons, build_result_embed, build_roster_embed, fit_to_message, format_status,
    remove_custom_id, resolve_remove_key,
)

ANA = Participant("ana", "Ana")
IVO = Participant("ivo", "Ivo")
MARA = Participant("mara", "Mara")

LETTERS = "abcdefghijklmnopqrstuvwxyz"


def long_names(count: int):
    """Distinct valid names of exactly 100 characters"""
    return [
        Participant.from_text("Ana" + "a" * 95 + LETTERS[i // 26] + LETTERS[i % 26])
        for i in range(count)
    ]


class TestStatus:

    def test_tones(self):
        assert format_status("Added.", "success") == "✅ Added."
        assert format_status("Bad name.", "error") == "❌ Bad name."
        assert format_status("Hello") == "Hello"
        assert format_status("", "success") == ""


class TestEmbeds:

    def test_roster_embed_counts_and_lists(self):
        embed = build_roster_embed([ANA, IVO])
        assert "(2)" in embed.title
        assert "• Ana" in embed.description
        assert "• Ivo" in embed.description

    def test_empty_roster_embed(self):
        embed = build_roster_embed([])
        assert "(0)" in embed.title
        assert "empty" in embed.description

    def test_no_result_placeholder(self):
        assert build_result_embed(None).description == NO_RESULT_TEXT

    def test_not_enough_entries_placeholder(self):
        embed = build_result_embed(PairingResult(pairs=[], unmatched=[ANA]))
        assert embed.description == NOT_ENOUGH_TEXT
        assert embed.fields[0].value == "Ana"

    def test_pairs_and_unmatched(self):
        embed = build_result_embed(PairingResult(pairs=[Pair(ANA, IVO)], unmatched=[MARA]))
        assert embed.description == "**Ana** → Ivo"
        assert embed.fields[0].name == "Participant without a pair"
        assert embed.fields[0].value == "Mara"

    def test_long_lists_are_truncated(self):
        many = [Participant(f"p{i}", f"P{i}") for i in range(60)]
        embed = build_roster_embed(many)
        assert "... and 20 more" in embed.description

    def test_long_names_fit_description_limit(self):
        embed = build_roster_embed(long_names(40))
        assert len(embed.description) <= 4096
        assert "more" in embed.description

    def test_long_names_fit_one_message(self):
        participants = long_names(41)
        result = generate_pairs(participants, random.Random(3))
        embeds = [build_roster_embed(participants), build_result_embed(result)]

        assert sum(len(embed) for embed in embeds) <= MAX_MESSAGE_CHARS
        assert fit_to_message(embeds) is False

    def test_overlong_stored_names_are_clipped(self):
        embed = build_roster_embed([Participant("x", "X" * 500)])
        assert len(embed.description) < 200

    def test_fit_to_message_shortens_last_embed(self):
        embeds = [disnake.Embed(description="x" * 5000), disnake.Embed(description="y" * 3000)]

        assert fit_to_message(embeds) is True
        assert sum(len(embed) for embed in embeds) <= MAX_MESSAGE_CHARS
        assert embeds[0].description == "x" * 5000


class TestRemoveButtons:

    def test_one_button_per_participant(self):
        buttons = build_remove_buttons([ANA, IVO])
        assert [b.custom_id for b in buttons] == [f"{REMOVE_PREFIX}ana", f"{REMOVE_PREFIX}ivo"]
        assert [b.label for b in buttons] == ["Ana", "Ivo"]

    def test_button_count_is_capped(self):
        buttons = build_remove_buttons([Participant(f"p{i}", f"P{i}") for i in range(40)])
        assert len(buttons) == MAX_REMOVE_BUTTONS

    def test_long_keys_with_shared_prefix_get_distinct_ids(self):
        first = Participant.from_text("Ana" + "a" * 90 + "bcdefgh")
        second = Participant.from_text("Ana" + "a" * 90 + "ijklmno")

        ids = [b.custom_id for b in build_remove_buttons([first, second])]
        assert len(set(ids)) == 2
        assert all(len(custom_id) <= 100 for custom_id in ids)
        assert all(custom_id.startswith(REMOVE_PREFIX) for custom_id in ids)

    def test_custom_id_resolves_back_to_key(self):
        first = Participant.from_text("Ana" + "a" * 90 + "bcdefgh")
        second = Participant.from_text("Ana" + "a" * 90 + "ijklmno")
        roster = [ANA, first, second]

        for participant in roster:
            assert resolve_remove_key(remove_custom_id(participant.key), roster) == participant.key

    def test_unknown_custom_id_resolves_to_none(self):
        assert resolve_remove_key(remove_custom_id("mara"), [ANA, IVO]) is None
