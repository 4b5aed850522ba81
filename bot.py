import os
import sys
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import ConfigLoader
from utils.logging import get_logger, setup_logging

# Initialize logger
logger = get_logger(__name__)

# List of initial extensions to load
initial_extensions = [
    "cogs.vac.events",
]

REQUIRED_ENV_VARS = ("DISCORD_TOKEN", "DISCORD_APP_ID")


def build_intents() -> discord.Intents:
    """Start from none and enable only what voice auto creation needs."""
    intents = discord.Intents.none()
    intents.guilds = True  # Required: channel create/delete events and channel cache
    intents.voice_states = True  # Required: voice join/leave and channel occupancy
    return intents


class VacBot(commands.Bot):
    """Bot hosting the voice auto creation services."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)

        self.config = ConfigLoader.load_config()
        self.services = None
        self.start_time = time.monotonic()

    async def setup_hook(self) -> None:
        """Initialize services and load cogs."""
        from services.service_container import ServiceContainer

        self.services = ServiceContainer(self)
        await self.services.initialize()
        logger.info("ServiceContainer initialized")

        for extension in initial_extensions:
            try:
                await self.load_extension(extension)
                logger.info(f"Loaded extension: {extension}")
            except Exception as e:
                logger.exception(f"Failed to load extension {extension}", exc_info=e)
                raise

    async def on_ready(self) -> None:
        """Called when the bot is ready (and again after each reconnect)."""
        if not self.user:
            logger.warning("Bot user is not initialized")
            return
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Bot is ready and online in {len(self.guilds)} guild(s)")

        for guild in self.guilds:
            self.check_bot_permissions(guild)

        if self.services is not None:
            await self.services.vac.schedule_reconcile()

    def check_bot_permissions(self, guild: discord.Guild) -> None:
        """Verify required guild-level permissions and log any missing ones."""
        required_permissions = [
            "view_channel",
            "manage_channels",
            "move_members",
            "connect",
            "send_messages",
            "embed_links",
        ]

        if not guild or not guild.me:
            logger.warning(
                "Bot permissions cannot be checked because the bot is not in the guild or the guild is None."
            )
            return

        bot_member = guild.me
        if missing_permissions := [
            perm
            for perm in required_permissions
            if not getattr(bot_member.guild_permissions, perm, False)
        ]:
            logger.warning(
                f"Missing permissions in guild '{guild.name}': {', '.join(missing_permissions)}"
            )
        else:
            logger.info(
                f"All required permissions are present in guild '{guild.name}'."
            )

    @property
    def uptime(self) -> str:
        """
        Calculates the bot's uptime.

        Returns:
            str: The uptime as a formatted string.
        """
        now = time.monotonic()
        delta = int(now - self.start_time)
        hours, remainder = divmod(delta, 3600)
        minutes, seconds = divmod(remainder, 60)
        return f"{hours}h {minutes}m {seconds}s"

    async def close(self) -> None:
        """
        Closes the bot and cleans up all resources.
        """
        logger.info("Shutting down the bot.")

        if self.services:
            try:
                await self.services.cleanup()
            except Exception as e:
                logger.exception("Error cleaning up services", exc_info=e)

        await super().close()


def main() -> None:
    """Load environment and configuration, set up logging and run the bot."""
    load_dotenv()
    config = ConfigLoader.load_config()

    logging_config = config.get("logging") or {}
    bot_config = config.get("bot") or {}
    setup_logging(
        log_file=logging_config.get("file", "logs/bot.log"),
        locale=bot_config.get("locale"),
    )

    missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
    if missing:
        logger.critical(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    try:
        application_id = int(os.environ["DISCORD_APP_ID"])
    except ValueError:
        logger.critical("DISCORD_APP_ID must be a numeric application id")
        sys.exit(1)

    # No text commands; mention-only keeps discord.py from parsing messages
    bot = VacBot(
        command_prefix=commands.when_mentioned,
        intents=build_intents(),
        application_id=application_id,
    )
    # Logging is already configured above
    bot.run(os.environ["DISCORD_TOKEN"], log_handler=None)


if __name__ == "__main__":
    main()
