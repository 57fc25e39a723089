"""
Secret Santa Views Module - Discord UI Components

RESPONSIBILITIES:
- Roster embed (list + counter)
- Result embed (pairs, unmatched, placeholders)
- Status line formatting (success / error / neutral)
- Remove buttons, one per participant

ISOLATION:
- Discord UI components only
- No callbacks (button clicks are handled by the cog listener)
"""

from __future__ import annotations

import hashlib
from typing import List, Optional

import disnake

from .secret_santa_pairing import PairingResult
from .secret_santa_roster import Participant

REMOVE_PREFIX = "santa_remove:"
MAX_REMOVE_BUTTONS = 25  # Discord limit: 5 rows x 5 buttons
MAX_CUSTOM_ID = 100
MAX_LISTED = 40
MAX_NAME_CHARS = 100

# Discord caps all embeds of one message at 6000 characters in total
MAX_MESSAGE_CHARS = 6000
ROSTER_CHAR_BUDGET = 2400
RESULT_CHAR_BUDGET = 3000

NO_RESULT_TEXT = "No pairs have been generated yet."
NOT_ENOUGH_TEXT = "Not enough entries to generate pairs."

_TONE_PREFIX = {"success": "✅ ", "error": "❌ "}


def format_status(text: str, tone: str = "") -> str:
    """Prefix a status message for its tone ("success", "error" or neutral)"""
    if not text:
        return ""
    return _TONE_PREFIX.get(tone, "") + text


def _clip(name: str) -> str:
    # Names restored from disk are not length-checked
    if len(name) <= MAX_NAME_CHARS:
        return name
    return name[:MAX_NAME_CHARS - 1] + "…"


def _limited_lines(lines: List[str], max_chars: int, limit: int = MAX_LISTED) -> str:
    """Join lines, stopping at the line limit or the character budget"""
    tail_room = len(f"\n... and {len(lines)} more")
    shown = []
    used = 0
    for line in lines[:limit]:
        cost = len(line) + (1 if shown else 0)
        if used + cost > max_chars - tail_room:
            break
        shown.append(line)
        used += cost

    hidden = len(lines) - len(shown)
    if hidden:
        shown.append(f"... and {hidden} more")
    return "\n".join(shown)


def remove_custom_id(key: str) -> str:
    """
    custom_id of the remove button for a participant key.

    Keys that fit are used as-is; longer ones are cut and suffixed with a
    hash so two keys sharing a long prefix still get distinct ids.
    """
    custom_id = f"{REMOVE_PREFIX}{key}"
    if len(custom_id) <= MAX_CUSTOM_ID:
        return custom_id
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:12]
    return f"{custom_id[:MAX_CUSTOM_ID - len(digest) - 1]}~{digest}"


def resolve_remove_key(custom_id: str, participants: List[Participant]) -> Optional[str]:
    """Participant key behind a remove button, or None if nobody matches"""
    for participant in participants:
        if remove_custom_id(participant.key) == custom_id:
            return participant.key
    return None


def build_roster_embed(participants: List[Participant]) -> disnake.Embed:
    embed = disnake.Embed(
        title=f"🎄 Participants ({len(participants)})",
        color=disnake.Color.green()
    )

    if participants:
        embed.description = _limited_lines(
            [f"• {_clip(p.display_name)}" for p in participants], ROSTER_CHAR_BUDGET
        )
    else:
        embed.description = "The roster is empty. Add someone with `/santa add`."

    if len(participants) > MAX_REMOVE_BUTTONS:
        embed.set_footer(
            text=f"Remove buttons shown for the first {MAX_REMOVE_BUTTONS} • use /santa remove for the rest"
        )
    return embed


def build_result_embed(result: Optional[PairingResult]) -> disnake.Embed:
    """
    Render the last pairing result.

    None means nothing was generated (or it was discarded); an empty pairs
    list means generation ran with fewer than two people.
    """
    embed = disnake.Embed(title="🎁 Pairing", color=disnake.Color.gold())

    if result is None:
        embed.description = NO_RESULT_TEXT
        return embed

    if result.pairs:
        embed.description = _limited_lines(
            [f"**{_clip(pair.giver.display_name)}** → {_clip(pair.receiver.display_name)}" for pair in result.pairs],
            RESULT_CHAR_BUDGET
        )
    else:
        embed.description = NOT_ENOUGH_TEXT

    if result.unmatched:
        embed.add_field(
            name="Participant without a pair",
            value="\n".join(_clip(p.display_name) for p in result.unmatched)[:1024],
            inline=False
        )
    return embed


def fit_to_message(embeds: List[disnake.Embed]) -> bool:
    """
    Shorten the last embed's description until all embeds fit one message.

    Returns True if anything was cut.
    """
    overflow = sum(len(embed) for embed in embeds) - MAX_MESSAGE_CHARS
    if overflow <= 0:
        return False

    last = embeds[-1]
    description = last.description or ""
    keep = max(0, len(description) - overflow - 2)
    last.description = description[:keep] + "\n…"
    return True


def build_remove_buttons(participants: List[Participant]) -> List[disnake.ui.Button]:
    """
    One ✖ button per participant (first 25 only).

    The buttons carry no callbacks: clicks are routed by custom_id through
    the cog's on_button_click listener, so buttons on old messages keep
    working after a restart.
    """
    return [
        disnake.ui.Button(
            label=_clip(participant.display_name)[:80],
            emoji="✖️",
            style=disnake.ButtonStyle.secondary,
            custom_id=remove_custom_id(participant.key),
        )
        for participant in participants[:MAX_REMOVE_BUTTONS]
    ]


__all__ = [
    'REMOVE_PREFIX', 'MAX_REMOVE_BUTTONS', 'MAX_MESSAGE_CHARS', 'NO_RESULT_TEXT', 'NOT_ENOUGH_TEXT',
    'remove_custom_id', 'resolve_remove_key', 'fit_to_message',
    'format_status', 'build_roster_embed', 'build_result_embed', 'build_remove_buttons',
]
