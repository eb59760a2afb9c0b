"""
Chirp cog.

Provides:
- !chirp: Play a random chirp (spammable, no cooldown)
- !chirpstatus: Show whether the rubber chicken is loose
- !chirpreset: Owner-only manual end of an escalation

Also watches the channel's live status and ends any escalation when the
stream goes offline.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Iterable, Optional

from twitchio.ext import commands
from twitchio.ext.commands import Context

from chirpbot.utils.achievements import AchievementKind
from chirpbot.utils.chirp import ChirpOutcome, PlaybackDecision
from chirpbot.utils.logging import get_logger
from chirpbot.utils.permissions import is_owner

if TYPE_CHECKING:
    from chirpbot.bot import TwitchBot

logger = get_logger(__name__)


def format_decision(decision: PlaybackDecision) -> Optional[str]:
    """
    Chat reply for a chirp, or None for a plain chirp.

    Plain chirps stay silent in chat so spamming !chirp only spams audio.
    """
    user = decision.invoker
    if decision.outcome is ChirpOutcome.ENTERED:
        return f"🐔 @{user} set the rubber chicken loose! AAAAAAAAH"
    if decision.outcome is ChirpOutcome.CONTINUED:
        return f"🐔 The chicken screams again! x{decision.repeat_count_at_draw}"
    if decision.outcome is ChirpOutcome.ENDED:
        return f"🐦 @{user} calmed the chicken down."
    return None


class Chirp(commands.Cog):
    """
    The !chirp command and the stream-end watcher.

    All state lives in the bot's shared ChirpCommandHandler.
    """

    def __init__(self, bot: TwitchBot) -> None:
        self.bot = bot
        self._live_channels: set[str] = set()
        self._watch_task: Optional[asyncio.Task] = None
        self._running = False

        logger.info("Chirp cog initialized")

    # ==================== Commands ====================

    @commands.command(name="chirp")
    async def chirp(self, ctx: Context) -> None:
        """
        Play a random chirp. Anything after the command is ignored.

        Usage: !chirp
        """
        decision = self.bot.chirp_handler.handle(ctx.author.name)

        self.bot.player.play(self.bot.sound_pool.path_for(decision.selected_sound_id))

        reply = format_decision(decision)
        if reply:
            await ctx.send(reply)

    @commands.command(name="chirpstatus", aliases=["chicken"])
    async def chirp_status(self, ctx: Context) -> None:
        """
        Show the escalation state and how many mates have set the chicken loose.

        Usage: !chirpstatus
        """
        active, repeats = self.bot.chirp_handler.status()
        runners = self.bot.db.count_achievements(AchievementKind.CHICKEN_RUN.value)

        if active:
            state = f"🐔 The chicken is LOOSE ({repeats} screams and counting)"
        else:
            state = "🐦 All calm, just chirps"
        await ctx.send(f"@{ctx.author.name} {state}. Chicken runners so far: {runners}")

    @commands.command(name="chirpreset")
    @is_owner()
    async def chirp_reset(self, ctx: Context) -> None:
        """
        End a running escalation by hand.

        Usage: !chirpreset
        """
        if self.bot.reset_escalation():
            await ctx.send(f"@{ctx.author.name} The chicken has been caught. 🐔🥅")
        else:
            await ctx.send(f"@{ctx.author.name} No chicken on the loose.")

    # ==================== Stream Watcher ====================

    @commands.Cog.event()
    async def event_ready(self) -> None:
        """Start the stream watcher once connected."""
        if not self._running:
            self._running = True
            self._watch_task = asyncio.create_task(self._watch_streams())
            logger.info("Stream watcher started")

    def cog_unload(self) -> None:
        """Stop the stream watcher."""
        self._running = False
        if self._watch_task:
            self._watch_task.cancel()

    def update_live_channels(self, live: Iterable[str]) -> bool:
        """
        Record which channels are live and end escalation on stream end.

        Args:
            live: Names of the channels currently live

        Returns:
            bool: True if a channel went offline since the last check
        """
        live_now = {name.lower() for name in live}
        went_offline = self._live_channels - live_now
        self._live_channels = live_now

        if not went_offline:
            return False

        logger.info("Stream ended for %s", ", ".join(sorted(went_offline)))
        self.bot.reset_escalation()
        return True

    async def _watch_streams(self) -> None:
        """Poll Twitch for the live status of the configured channels."""
        while self._running:
            try:
                streams = await self.bot.fetch_streams(user_logins=self.bot.config.channels)
                self.update_live_channels(stream.user.name for stream in streams)
            except Exception as e:
                logger.error("Error checking stream status: %s", e)

            await asyncio.sleep(self.bot.config.stream_check_interval)


def prepare(bot: TwitchBot) -> None:
    """
    Prepare function called by TwitchIO when loading the cog.

    Args:
        bot: The bot instance
    """
    bot.add_cog(Chirp(bot))
