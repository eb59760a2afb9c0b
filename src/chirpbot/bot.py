"""
Main Twitch bot class.

This module contains the TwitchBot class which handles:
- Connection to Twitch IRC
- Building the shared chirp machinery (sound pool, escalation, ledger)
- Loading cogs
- Archiving chat messages
- Command error handling and graceful shutdown
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Optional

from twitchio.ext import commands

from chirpbot.config import Config
from chirpbot.utils.achievements import AchievementLedger
from chirpbot.utils.chirp import ChirpCommandHandler, build_chirp_handler
from chirpbot.utils.database import DatabaseManager, get_database
from chirpbot.utils.logging import get_logger
from chirpbot.utils.playback import SoundPlayer
from chirpbot.utils.sound_pool import SoundPool
from chirpbot.utils.tattoy import TattoyClient

if TYPE_CHECKING:
    from twitchio import Channel, Message

logger = get_logger(__name__)

COGS = (
    "chirpbot.cogs.chirp",
    "chirpbot.cogs.arrivals",
    "chirpbot.cogs.responders",
    "chirpbot.cogs.tattoy",
    "chirpbot.cogs.alerts",
)


class TwitchBot(commands.Bot):
    """
    Chirp bot.

    Owns the single ChirpCommandHandler for the process, so every cog
    sees the same escalation state.

    Attributes:
        config: Bot configuration
        db: Database manager
        sound_pool: Validated chirp sound catalogue
        chirp_handler: Shared !chirp handler
        player: External sound player
        tattoy: Terminal emote plugin client
    """

    def __init__(
        self,
        config: Config,
        db: Optional[DatabaseManager] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize the Twitch bot.

        Args:
            config: Bot configuration object
            db: Database manager (default: the global one at config.database_path)
            seed: Optional seed for reproducible chirp draws

        Raises:
            SoundPoolError: If the configured sound catalogue is unusable
        """
        self.config = config

        # Validate the sound pool before touching the network
        self.sound_pool = SoundPool.from_config(config)
        self.db = db or get_database(config.database_path)
        self.chirp_handler: ChirpCommandHandler = build_chirp_handler(
            self.sound_pool,
            ledger=AchievementLedger(self.db),
            seed=seed,
        )
        self.player = SoundPlayer(config.player_command, config.player_volume)
        self.tattoy = TattoyClient(config.tattoy_socket_path)

        super().__init__(
            token=config.oauth_token,
            client_id=config.client_id,
            nick=config.bot_nick,
            prefix=config.prefix,
            initial_channels=config.channels,
            case_insensitive=True,
        )

        logger.info(
            "Bot initialized for channels: %s (%d chirp sounds)",
            ", ".join(config.channels),
            len(self.sound_pool),
        )

        self._load_cogs()

    def _load_cogs(self) -> None:
        """Load every cog module."""
        for cog_path in COGS:
            try:
                self.load_module(cog_path)
                logger.info("Loaded cog: %s", cog_path)
            except Exception as e:
                logger.error("Failed to load cog %s: %s", cog_path, e)

    def reset_escalation(self) -> bool:
        """Stream-ended hook: drop any running chicken escalation."""
        return self.chirp_handler.reset_escalation()

    async def event_ready(self) -> None:
        """Called when the bot is ready and connected."""
        logger.info("Logged in as: %s", self.nick)
        logger.info("Connected to channels: %s", ", ".join(c.name for c in self.connected_channels))

    async def event_channel_joined(self, channel: Channel) -> None:
        logger.info("Joined channel: %s", channel.name)

    async def event_message(self, message: Message) -> None:
        """
        Archive every chat message, then dispatch commands.

        Args:
            message: The received message
        """
        if message.echo:
            return

        author = message.author
        logger.debug(
            "[%s] %s: %s",
            message.channel.name if message.channel else "DM",
            author.name if author else "Unknown",
            message.content[:50] + "..." if len(message.content) > 50 else message.content,
        )

        if author is not None:
            try:
                self.db.save_message(
                    twitch_user_id=str(author.id or ""),
                    username=author.name,
                    text=message.content,
                    kind="chat",
                    timestamp=getattr(message, "timestamp", None),
                )
            except sqlite3.Error as e:
                logger.warning("Failed to archive message from %s: %s", author.name, e)

        await self.handle_commands(message)

    async def event_command_error(
        self,
        context: commands.Context,
        error: Exception,
    ) -> None:
        """
        Called when a command raises an error.

        Args:
            context: Command context
            error: The exception that was raised
        """
        if isinstance(error, commands.CommandNotFound):
            # Text responders and unknown commands land here
            return

        if isinstance(error, commands.CheckFailure):
            return

        logger.exception(
            "Error in command %s: %s",
            context.command.name if context.command else "unknown",
            error,
        )
        await context.send(
            f"@{context.author.name} An error occurred while processing your command."
        )

    async def close(self) -> None:
        """Shut down; a stopped bot ends the stream as far as chirps go."""
        self.reset_escalation()
        await super().close()
