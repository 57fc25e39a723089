"""
Secret Santa Cog - Roster and Pairing Commands

FEATURES:
- 🎄 Roster of named participants (validated, normalized, deduplicated)
- 🎲 Random disjoint giver → receiver pairs (Fisher-Yates shuffle)
- 💾 Roster and last result persist across restarts (JSON key-value store)
- ✖️ Per-participant remove buttons on the roster message
- ⏱️ Status lines clear themselves after a short delay

COMMANDS:
- /santa add [name] - Add a participant
- /santa remove [name] - Remove a participant (discards the last result)
- /santa clear - Empty the roster and discard the last result
- /santa generate - Generate pairs from the current roster
- /santa list - Show the roster and the last result

DATA STORAGE:
- secret_santa_store.json - Roster + last result (SANTA_DATA_FILE)
- secret_santa_store.backup - Written if the main file cannot be saved

STATE:
The cog owns one RosterState. Each command mutates it synchronously, then
persists, then re-renders; nothing awaits in between, so no lock is needed.
Adding a participant keeps the stored result; removing or clearing drops it.
"""

import asyncio
from typing import Optional, Set

import disnake
from disnake.ext import commands

from .roster_names import normalize_key
from .secret_santa_pairing import generate_pairs
from .secret_santa_storage import (
    DEFAULT_STORE_FILE, JsonFileStore, KeyValueStore,
    clear_result, clear_roster, load_roster_state, save_result, save_roster,
)
from .secret_santa_views import (
    REMOVE_PREFIX, build_remove_buttons, build_result_embed, build_roster_embed, fit_to_message,
    format_status, resolve_remove_key,
)

DEFAULT_STATUS_SECONDS = 1.2


class SecretSantaCog(commands.Cog):
    """Secret Santa roster management and pairing"""

    def __init__(self, bot, store: Optional[KeyValueStore] = None, rng=None):
        self.bot = bot
        self.logger = bot.logger.getChild("santa")

        config = getattr(bot, "config", None)
        if store is None:
            path = getattr(config, "SANTA_DATA_FILE", None) or DEFAULT_STORE_FILE
            store = JsonFileStore(path, logger=self.logger)
        self.store = store
        self.rng = rng
        self.status_seconds = float(getattr(config, "STATUS_MESSAGE_SECONDS", DEFAULT_STATUS_SECONDS))

        # Restore roster + last result (malformed data falls back to empty)
        self.roster = load_roster_state(self.store, self.logger)

        self._status_tasks: Set[asyncio.Task] = set()
        self._unloaded = False

        self.logger.info("Secret Santa cog initialized")

    async def cog_load(self):
        self.logger.info("Secret Santa cog loaded")

        # Notify Discord about cog loading
        if hasattr(self.bot, 'send_to_discord_log'):
            await self.bot.send_to_discord_log("🎄 Secret Santa cog loaded successfully", "SUCCESS")

    def cog_unload(self):
        """Cleanup cog (sync: final save + cancel pending status clears)"""
        if self._unloaded:
            return

        self._unloaded = True
        self.logger.info("Unloading Secret Santa cog...")

        for task in list(self._status_tasks):
            task.cancel()
        self._status_tasks.clear()

        self._save()
        self.logger.info("Secret Santa cog unloaded")

    def _save(self) -> bool:
        """Persist roster and last result"""
        saved = save_roster(self.store, self.roster.participants)
        if self.roster.last_result is None:
            saved = clear_result(self.store) and saved
        else:
            saved = save_result(self.store, self.roster.last_result) and saved
        return saved

    # ========== RENDERING ==========

    def _render(self):
        participants = self.roster.participants
        embeds = [build_roster_embed(participants), build_result_embed(self.roster.last_result)]
        if fit_to_message(embeds):
            self.logger.warning("Roster message was over Discord's size limit, pairing list shortened")
        return embeds, build_remove_buttons(participants)

    async def _respond(self, inter: disnake.ApplicationCommandInteraction, status: str = "", tone: str = ""):
        """Send the current roster + result with an optional self-clearing status line"""
        embeds, buttons = self._render()
        await inter.response.send_message(content=format_status(status, tone) or None, embeds=embeds, components=buttons)
        if status:
            self._schedule_status_clear(inter)

    async def _reject(self, inter: disnake.Interaction, reason: str):
        """Show a validation reason verbatim, nothing else changes"""
        await inter.response.send_message(
            content=format_status(reason, "error"),
            ephemeral=True,
            delete_after=self.status_seconds
        )

    def _schedule_status_clear(self, inter: disnake.Interaction):
        # Latest message wins; older clears still run but only blank their own message
        task = asyncio.create_task(self._clear_status_later(inter))
        self._status_tasks.add(task)
        task.add_done_callback(self._status_tasks.discard)

    async def _clear_status_later(self, inter: disnake.Interaction):
        await asyncio.sleep(self.status_seconds)
        try:
            await inter.edit_original_response(content=None)
        except disnake.HTTPException as e:
            self.logger.debug(f"Could not clear status message: {e}")

    # ========== HANDLERS ==========

    async def _handle_add(self, inter: disnake.ApplicationCommandInteraction, name: str):
        already_listed = self.roster.contains(name)

        check = self.roster.add(name)
        if not check.valid:
            self.logger.debug(f"Rejected name {name!r}: {check.reason}")
            await self._reject(inter, check.reason)
            return

        save_roster(self.store, self.roster.participants)

        if already_listed:
            await self._respond(inter, f"{self._bold_name(name)} is already on the roster.")
            return

        self.logger.info(f"Added {normalize_key(name)!r} ({len(self.roster)} participants)")
        await self._respond(inter, "Added.", "success")

    def _remove(self, key: str) -> int:
        removed = self.roster.remove(key)
        save_roster(self.store, self.roster.participants)
        clear_result(self.store)
        self.logger.info(f"Removed {normalize_key(key)!r} ({removed} entries), last result discarded")
        return removed

    async def _handle_remove(self, inter: disnake.ApplicationCommandInteraction, name: str):
        removed = self._remove(name)
        if removed:
            await self._respond(inter, "Participant removed.", "success")
        else:
            await self._respond(inter, f"Nobody named {self._bold_name(name)} is on the roster.")

    async def _handle_remove_button(self, inter: disnake.MessageInteraction, key: Optional[str]):
        """Remove via the ✖ button: edits the roster message in place"""
        removed = self._remove(key) if key else 0
        status = format_status("Participant removed.", "success") if removed else "Already removed."

        embeds, buttons = self._render()
        await inter.response.edit_message(content=status, embeds=embeds, components=buttons)
        self._schedule_status_clear(inter)

    async def _handle_clear(self, inter: disnake.ApplicationCommandInteraction):
        count = len(self.roster)
        self.roster.clear_all()
        clear_roster(self.store)
        clear_result(self.store)

        self.logger.info(f"Roster cleared ({count} participants removed)")
        await self._respond(inter, "List cleared.", "success")

    async def _handle_generate(self, inter: disnake.ApplicationCommandInteraction):
        result = generate_pairs(self.roster.participants, self.rng)
        self.roster.record_result(result)
        save_result(self.store, result)

        self.logger.info(
            f"Generated {len(result.pairs)} pairs from {len(self.roster)} participants "
            f"({len(result.unmatched)} unmatched)"
        )
        await self._respond(inter, "Pairs generated.", "success")

    async def _handle_list(self, inter: disnake.ApplicationCommandInteraction):
        await self._respond(inter)

    # ========== LISTENERS ==========

    @commands.Cog.listener()
    async def on_button_click(self, inter: disnake.MessageInteraction):
        """Route ✖ clicks, including buttons on messages sent before a restart"""
        custom_id = inter.component.custom_id or ""
        if not custom_id.startswith(REMOVE_PREFIX):
            return

        # Someone already removed (or a stale message) resolves to None
        key = resolve_remove_key(custom_id, self.roster.participants)
        await self._handle_remove_button(inter, key)

    @staticmethod
    def _bold_name(text: str) -> str:
        return f"**{' '.join((text or '').split())}**"

    # ========== COMMANDS ==========

    @commands.slash_command(name="santa")
    async def santa_root(self, inter: disnake.ApplicationCommandInteraction):
        """Secret Santa commands"""
        pass

    @santa_root.sub_command(name="add", description="Add a participant to the roster")
    async def santa_add(
        self,
        inter: disnake.ApplicationCommandInteraction,
        name: str = commands.Param(description="First and/or last name", max_length=100)
    ):
        """Add participant"""
        await self._handle_add(inter, name)

    @santa_root.sub_command(name="remove", description="Remove a participant from the roster")
    async def santa_remove(
        self,
        inter: disnake.ApplicationCommandInteraction,
        name: str = commands.Param(description="Name as it appears on the roster", max_length=100)
    ):
        """Remove participant"""
        await self._handle_remove(inter, name)

    @santa_root.sub_command(name="clear", description="Remove everyone and discard the last pairing")
    async def santa_clear(self, inter: disnake.ApplicationCommandInteraction):
        """Clear roster"""
        await self._handle_clear(inter)

    @santa_root.sub_command(name="generate", description="Generate Secret Santa pairs")
    async def santa_generate(self, inter: disnake.ApplicationCommandInteraction):
        """Generate pairs"""
        await self._handle_generate(inter)

    @santa_root.sub_command(name="list", description="Show the roster and the last pairing")
    async def santa_list(self, inter: disnake.ApplicationCommandInteraction):
        """Show roster"""
        await self._handle_list(inter)


def setup(bot):
    """Setup the cog"""
    bot.add_cog(SecretSantaCog(bot))
