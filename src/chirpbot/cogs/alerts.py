"""
Raid and follow alerts cog.

TwitchIO has no dedicated raid event, so USERNOTICE lines are parsed
from the raw IRC data. A raid plays the raid sound and welcomes the
raiders in chat.

Follows don't reach IRC at all. The followers list of every joined
channel is polled through Helix; anyone new since the previous poll gets
the follow sound and a welcome. The first poll only learns the current
followers.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Iterable, Optional

from twitchio.ext import commands

from chirpbot.utils.logging import get_logger

if TYPE_CHECKING:
    from chirpbot.bot import TwitchBot

logger = get_logger(__name__)

RAID_COOLDOWN = 30.0
FOLLOW_COOLDOWN = 5.0


def parse_usernotice(data: str) -> Optional[tuple[str, dict[str, str]]]:
    """
    Extract the channel and tags from a raw USERNOTICE line.

    Returns:
        tuple | None: (channel, tags), or None for anything else
    """
    if "USERNOTICE" not in data:
        return None

    parts = data.split(" ")
    tags_str = parts[0] if parts[0].startswith("@") else ""

    tags: dict[str, str] = {}
    for tag in tags_str.lstrip("@").split(";"):
        if "=" in tag:
            k, v = tag.split("=", 1)
            tags[k] = v

    channel = next((p.lstrip("#").lower() for p in parts if p.startswith("#")), None)
    if not channel:
        return None
    return channel, tags


def raid_details(tags: dict[str, str]) -> tuple[str, int]:
    """Raider display name and viewer count from USERNOTICE tags."""
    raider = tags.get("msg-param-displayName", tags.get("display-name", tags.get("login", "Someone")))
    try:
        viewers = int(tags.get("msg-param-viewerCount", "0"))
    except ValueError:
        viewers = 0
    return raider, viewers


class Alerts(commands.Cog):
    """Incoming raid and follow alerts."""

    def __init__(self, bot: TwitchBot) -> None:
        self.bot = bot
        self._last_alert: dict[tuple[str, str], float] = {}
        self._known_followers: dict[str, set[str]] = {}
        self._follow_task: Optional[asyncio.Task] = None
        self._running = False

    def _alert_allowed(self, kind: str, channel: str, cooldown: float) -> bool:
        now = time.monotonic()
        key = (kind, channel)
        last = self._last_alert.get(key)
        if last is not None and now - last < cooldown:
            return False
        self._last_alert[key] = now
        return True

    def _play(self, sound: Optional[str]) -> None:
        if sound:
            self.bot.player.play(self.bot.sound_pool.path_for(sound))

    # ==================== Raids ====================

    @commands.Cog.event()
    async def event_raw_data(self, data: str) -> None:
        parsed = parse_usernotice(data)
        if parsed is None:
            return

        channel, tags = parsed
        if tags.get("msg-id") != "raid":
            return

        try:
            await self._handle_raid(channel, tags)
        except Exception as e:
            logger.error("Error handling raid in %s: %s", channel, e)

    async def _handle_raid(self, channel_name: str, tags: dict[str, str]) -> None:
        if not self._alert_allowed("raid", channel_name, RAID_COOLDOWN):
            logger.debug("Raid alert on cooldown for %s", channel_name)
            return

        raider, viewers = raid_details(tags)
        logger.info("Raid: %d viewers from %s", viewers, raider)

        self._play(self.bot.config.raid_sound)

        channel = self.bot.get_channel(channel_name)
        if channel is None:
            logger.warning("Could not find channel %s for raid alert", channel_name)
            return
        await channel.send(f"{viewers} RAIDERS FROM {raider}! 🎊")

    # ==================== Follows ====================

    @commands.Cog.event()
    async def event_ready(self) -> None:
        """Start the follower watcher once connected."""
        if not self._running:
            self._running = True
            self._follow_task = asyncio.create_task(self._watch_followers())
            logger.info("Follower watcher started")

    def cog_unload(self) -> None:
        """Stop the follower watcher."""
        self._running = False
        if self._follow_task:
            self._follow_task.cancel()

    def new_followers(self, channel: str, followers: Iterable[str]) -> list[str]:
        """
        Compare a followers list with the previous one for ``channel``.

        Returns:
            list: Followers not seen before, empty on the first call
        """
        current = {name.lower() for name in followers}
        known = self._known_followers.get(channel)
        self._known_followers[channel] = current if known is None else known | current
        if known is None:
            return []
        return sorted(current - known)

    async def _handle_follow(self, channel_name: str, follower: str) -> None:
        logger.info("New follower in %s: %s", channel_name, follower)

        if self._alert_allowed("follow", channel_name, FOLLOW_COOLDOWN):
            self._play(self.bot.config.follow_sound)

        channel = self.bot.get_channel(channel_name)
        if channel is None:
            logger.warning("Could not find channel %s for follow alert", channel_name)
            return
        await channel.send(f"Welcome {follower} ❤️")

    async def check_followers(self, channel_name: str) -> None:
        """Fetch the channel's followers and alert on new ones."""
        users = await self.bot.fetch_users(names=[channel_name])
        if not users:
            logger.warning("Unknown channel %s, skipping follower check", channel_name)
            return

        followers = await users[0].fetch_channel_followers(
            self.bot.config.get_oauth_token_clean()
        )
        for name in self.new_followers(channel_name, (f.user.name for f in followers)):
            await self._handle_follow(channel_name, name)

    async def _watch_followers(self) -> None:
        """Poll the followers of every configured channel."""
        while self._running:
            for channel_name in self.bot.config.channels:
                try:
                    await self.check_followers(channel_name)
                except Exception as e:
                    logger.error("Error checking followers for %s: %s", channel_name, e)

            await asyncio.sleep(self.bot.config.follow_check_interval)


def prepare(bot: TwitchBot) -> None:
    """Prepare function called by TwitchIO when loading the cog."""
    bot.add_cog(Alerts(bot))
