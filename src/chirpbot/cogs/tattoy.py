"""
Terminal emotes cog.

Provides:
- !tty <emote> [text]: Draw a Twitch emote over ``text`` in the
  streamer's terminal (defaults to the chatter's name)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from twitchio.ext import commands
from twitchio.ext.commands import Context

from chirpbot.utils.logging import get_logger
from chirpbot.utils.permissions import cooldown, CooldownBucket
from chirpbot.utils.tattoy import EmoteMessage, TattoyUnavailableError

if TYPE_CHECKING:
    from chirpbot.bot import TwitchBot

logger = get_logger(__name__)

MAX_REGEXISH_LENGTH = 80


def build_emote_message(username: str, rest: Optional[str]) -> Optional[EmoteMessage]:
    """
    Parse ``!tty`` arguments.

    Returns:
        EmoteMessage | None: None when no emote was given
    """
    if not rest or not rest.strip():
        return None
    emote, _, text = rest.strip().partition(" ")
    regexish = text.strip() or username
    return EmoteMessage(
        username=username,
        regexish=regexish[:MAX_REGEXISH_LENGTH],
        emote=emote,
    )


class Tattoy(commands.Cog):
    """Forward chat emotes to the terminal plugin."""

    def __init__(self, bot: TwitchBot) -> None:
        self.bot = bot

    @commands.command(name="tty")
    @cooldown(rate=2.0, bucket=CooldownBucket.USER)
    async def tty(self, ctx: Context, *, rest: str | None = None) -> None:
        """
        Put an emote in the terminal.

        Usage: !tty <emote> [text to cover]
        Example: !tty LUL nightly
        """
        message = build_emote_message(ctx.author.name, rest)
        if message is None:
            await ctx.send(f"@{ctx.author.name} Usage: {self.bot.config.prefix}tty <emote> [text]")
            return

        try:
            await self.bot.tattoy.send(message)
        except TattoyUnavailableError as e:
            logger.warning("%s", e)
            await ctx.send(f"@{ctx.author.name} The terminal isn't listening right now.")


def prepare(bot: TwitchBot) -> None:
    """Prepare function called by TwitchIO when loading the cog."""
    bot.add_cog(Tattoy(bot))
