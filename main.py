import asyncio
import logging
import logging.handlers
import os
import signal
import sys
import time
from typing import Optional

import disnake
from disnake.ext import commands
from dotenv import load_dotenv

load_dotenv("config.env", override=True)


# ============ CONFIG ============
class Config:
    """Load config with validation and defaults"""
    _required = {
        "DISCORD_TOKEN": (str, None),
    }
    _optional = {
        "DISCORD_GUILD_ID": (int, 0),
        "DISCORD_LOG_CHANNEL_ID": (int, 0),
        "DEBUG_MODE": (bool, False),
        "LOG_LEVEL": (str, "INFO"),
        "SANTA_DATA_FILE": (str, "secret_santa_store.json"),
        "STATUS_MESSAGE_SECONDS": (float, 1.2),
    }

    def __init__(self):
        self.data = {}
        self._load()

    def _load(self):
        missing = []
        for key, (cast_type, _) in self._required.items():
            val = os.getenv(key)
            if not val:
                missing.append(key)
                continue
            # Clean string values (trim whitespace)
            if cast_type == str:
                self.data[key] = val.strip()
            else:
                self.data[key] = cast_type(val)

        if missing:
            print(f"Fatal: Missing env vars: {', '.join(missing)}")
            raise RuntimeError(f"Missing config: {missing}")

        for key, (cast_type, default) in self._optional.items():
            val = os.getenv(key, default)
            if cast_type == bool:
                self.data[key] = str(val).lower() == "true"
            elif cast_type in (int, float):
                self.data[key] = cast_type(val)
                # Validate numeric ranges
                self._validate_number_config(key, self.data[key])
            else:
                self.data[key] = str(val).strip()

    def _validate_number_config(self, key: str, value: float):
        """Validate numeric config values are within reasonable ranges"""
        validators = {
            "STATUS_MESSAGE_SECONDS": (0, 30),
        }

        if key in validators:
            min_val, max_val = validators[key]
            if not (min_val <= value <= max_val):
                print(f"Warning: {key}={value} is outside recommended range ({min_val}-{max_val})")

    def __getattr__(self, name: str):
        key = name.upper()
        if key in self.data:
            return self.data[key]
        raise AttributeError(f"Config missing: {key}")


# ============ DISCORD LOGGING ============
class DiscordLogHandler(logging.Handler):
    """Custom logging handler that sends messages to Discord channels"""

    def __init__(self, bot=None, log_channel_id: int = None):
        super().__init__()
        self.bot = bot
        self.log_channel_id = log_channel_id
        self.message_queue = asyncio.Queue(maxsize=50)
        self.sender_task: Optional[asyncio.Task] = None
        self._last_message = {}  # Rate limiting

    def set_bot(self, bot):
        """Set bot instance after it's created"""
        self.bot = bot
        if bot and not self.sender_task:
            self.sender_task = asyncio.create_task(self._message_sender())

    def emit(self, record):
        """Queue log message for Discord sending"""
        if not self.bot or not self.log_channel_id:
            return

        try:
            # Only send WARNING and above to Discord
            if record.levelno < logging.WARNING:
                return

            # Rate limiting - don't spam same message
            msg_key = f"{record.levelname}:{record.getMessage()[:50]}"
            now = time.time()
            if msg_key in self._last_message and (now - self._last_message[msg_key]) < 60:
                return
            self._last_message[msg_key] = now

            emoji = {"WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🚨"}.get(record.levelname, "ℹ️")
            message = f"{emoji} **{record.levelname}** | {record.name}\n```\n{record.getMessage()}\n```"

            # Truncate if too long
            if len(message) > 1900:
                message = message[:1900] + "...\n```"

            try:
                self.message_queue.put_nowait(message)
            except asyncio.QueueFull:
                pass  # Drop message if queue is full

        except Exception:
            self.handleError(record)

    async def _message_sender(self):
        """Background task to send queued messages"""
        while True:
            try:
                message = await self.message_queue.get()

                if self.bot and self.log_channel_id:
                    channel = self.bot.get_channel(self.log_channel_id)
                    if channel:
                        await channel.send(message)
                    await asyncio.sleep(1)  # Rate limit

            except asyncio.CancelledError:
                break
            except disnake.HTTPException:
                continue

    def close(self):
        """Clean shutdown of Discord logging"""
        if self.sender_task:
            self.sender_task.cancel()
        super().close()


# ============ SETUP ============
def setup_logging(config: Config) -> tuple[logging.Logger, Optional[DiscordLogHandler]]:
    logger = logging.getLogger("bot")
    logger.setLevel("DEBUG" if config.DEBUG_MODE else config.LOG_LEVEL)

    # Prevent duplicate handlers
    if logger.handlers:
        discord_handler = None
        for handler in logger.handlers:
            if isinstance(handler, DiscordLogHandler):
                discord_handler = handler
                break
        return logger, discord_handler

    fmt = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler with rotation
    fh = logging.handlers.RotatingFileHandler(
        "bot.log", maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Discord handler (connected to the bot in on_ready)
    discord_handler = None
    if config.DISCORD_LOG_CHANNEL_ID:
        discord_handler = DiscordLogHandler(log_channel_id=config.DISCORD_LOG_CHANNEL_ID)
        discord_handler.setLevel(logging.WARNING)  # Only warnings and above to Discord
        logger.addHandler(discord_handler)

    return logger, discord_handler


# Load config early
try:
    config = Config()
except (RuntimeError, ValueError) as e:
    print(f"Fatal: {e}")
    sys.exit(1)

logger, discord_handler = setup_logging(config)

# Bot setup (guild-scoped command sync when a guild is configured)
bot = commands.InteractionBot(
    intents=disnake.Intents.default(),
    test_guilds=[config.DISCORD_GUILD_ID] if config.DISCORD_GUILD_ID else None,
)
bot.config = config
bot.logger = logger
bot.discord_handler = discord_handler
bot.ready_once = False


async def send_to_discord_log(message: str, level: str = "INFO"):
    """Send a message to the Discord log channel"""
    if not bot.ready_once or not config.DISCORD_LOG_CHANNEL_ID:
        return

    try:
        log_channel = bot.get_channel(config.DISCORD_LOG_CHANNEL_ID)
        if not log_channel:
            return

        emoji = {"INFO": "ℹ️", "WARNING": "⚠️", "ERROR": "❌", "CRITICAL": "🚨", "SUCCESS": "✅"}.get(level, "ℹ️")
        formatted_message = f"{emoji} **{level}** | {message}"

        # Truncate if too long
        if len(formatted_message) > 2000:
            formatted_message = formatted_message[:1997] + "..."

        await log_channel.send(formatted_message)
    except disnake.HTTPException as e:
        logger.debug(f"Failed to send Discord log message: {e}")


# Utility for cogs
bot.send_to_discord_log = send_to_discord_log


@bot.event
async def on_ready():
    if not bot.ready_once:
        logger.info(f"Logged in as {bot.user}")

        # Connect Discord logging handler
        if discord_handler:
            discord_handler.set_bot(bot)
            logger.info("Discord logging handler connected")

        bot.ready_once = True
        await send_to_discord_log(f"🤖 **Bot Online** | {bot.user.name} is ready!", "SUCCESS")


@bot.event
async def on_disconnect():
    logger.warning("Bot disconnected from Discord")


@bot.event
async def on_resumed():
    logger.info("Bot reconnected to Discord")


@bot.event
async def on_error(event, *args, **kwargs):
    logger.error(f"Error in {event}", exc_info=True)


@bot.event
async def on_slash_command_error(inter: disnake.ApplicationCommandInteraction, error: Exception):
    logger.error(f"Slash command /{inter.application_command.qualified_name} failed: {error}", exc_info=error)
    try:
        if inter.response.is_done():
            await inter.followup.send(content="❌ Something went wrong", ephemeral=True)
        else:
            await inter.response.send_message(content="❌ Something went wrong", ephemeral=True)
    except disnake.HTTPException as e:
        logger.debug(f"Could not report command error: {e}")


async def graceful_shutdown():
    """Clean shutdown ensuring all resources are released"""
    logger.info("Shutting down...")

    # Unload all cogs properly (final state save happens in cog_unload)
    for cog_name in list(bot.cogs.keys()):
        try:
            bot.remove_cog(cog_name)
        except Exception as e:
            logger.debug(f"Cog unload error for {cog_name}: {e}")

    if discord_handler:
        discord_handler.close()

    try:
        await bot.close()
    except Exception as e:
        logger.debug(f"Bot close error: {e}")


def load_cogs() -> int:
    """Load cogs and return count of successfully loaded cogs"""
    cogs = ["cogs.SecretSanta_cog"]
    loaded = 0
    for cog in cogs:
        try:
            bot.load_extension(cog)
            logger.info(f"Loaded {cog}")
            loaded += 1
        except Exception as e:
            logger.error(f"Failed to load {cog}: {e}", exc_info=True)
    return loaded


# Graceful shutdown on signals
def handle_signal(signum, frame):
    logger.info(f"Received signal {signum}")
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No event loop, run cleanup directly
        asyncio.run(graceful_shutdown())
        return
    loop.create_task(graceful_shutdown())


for sig in (signal.SIGINT, signal.SIGTERM):
    signal.signal(sig, handle_signal)


if __name__ == "__main__":
    logger.info("Starting bot...")

    num_loaded = load_cogs()
    if num_loaded == 0:
        logger.critical("No cogs loaded!")
        sys.exit(1)

    logger.info(f"Successfully loaded {num_loaded} cogs")

    max_retries = 5
    retry_count = 0

    while retry_count < max_retries:
        try:
            bot.run(config.DISCORD_TOKEN, reconnect=True)
            break  # If we get here, bot shut down normally
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
            break
        except disnake.LoginFailure as e:
            logger.critical(f"Login failed, check DISCORD_TOKEN: {e}")
            sys.exit(1)
        except Exception as e:
            retry_count += 1
            logger.critical(f"Bot failed (attempt {retry_count}/{max_retries}): {e}", exc_info=True)

            if retry_count < max_retries:
                wait_time = min(30, 5 * retry_count)  # Linear backoff, max 30s
                logger.info(f"Retrying in {wait_time} seconds...")
                time.sleep(wait_time)
            else:
                logger.critical("Max retries exceeded. Bot will not restart.")
