"""
Arrivals cog.

Provides:
- !arrived (!arrive, !arrives): Play the mate's personal arrival sound,
  at most once per cooldown window
"""

from __future__ import annotations

from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING, Optional

from twitchio.ext import commands
from twitchio.ext.commands import Context

from chirpbot.utils.logging import get_logger

if TYPE_CHECKING:
    from chirpbot.bot import TwitchBot

logger = get_logger(__name__)


def arrival_sound_name(username: str) -> str:
    """File name of a mate's personal arrival sound."""
    return f"{username.lower()}-arrived.mp3"


def cooldown_remaining(
    last_played: Optional[datetime],
    cooldown_hours: int,
    now: Optional[datetime] = None,
) -> Optional[timedelta]:
    """
    Time left before the arrival sound may play again.

    Returns:
        timedelta | None: Remaining time, or None if it may play now
    """
    if last_played is None:
        return None
    now = now or datetime.now(timezone.utc)
    remaining = last_played + timedelta(hours=cooldown_hours) - now
    if remaining <= timedelta(0):
        return None
    return remaining


class Arrivals(commands.Cog):
    """Per-mate arrival sounds."""

    def __init__(self, bot: TwitchBot) -> None:
        self.bot = bot

    @commands.command(name="arrived", aliases=["arrive", "arrives"])
    async def arrived(self, ctx: Context) -> None:
        """
        Announce yourself with your own sound.

        Usage: !arrived
        """
        username = ctx.author.name
        mate = self.bot.db.get_mate(username)

        remaining = cooldown_remaining(
            mate["last_played"], self.bot.config.arrival_cooldown_hours
        )
        if remaining is not None:
            logger.info("Not playing %s's sound, %s to go", username, remaining)
            await ctx.send(f"You're already here {username}!")
            return

        path = self.bot.sound_pool.path_for(arrival_sound_name(username))
        self.bot.player.play(path)
        await ctx.send(f"{username} has arrived 📣")

        self.bot.db.set_last_played(username)


def prepare(bot: TwitchBot) -> None:
    """Prepare function called by TwitchIO when loading the cog."""
    bot.add_cog(Arrivals(bot))
