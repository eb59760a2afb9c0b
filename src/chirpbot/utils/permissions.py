"""
Command decorators.

- ``is_owner``: restrict a command to the bot owner from the config
- ``cooldown``: throttle a command per user, per channel or globally

!chirp deliberately uses neither.
"""

from __future__ import annotations

import time
from collections import defaultdict
from enum import Enum
from functools import wraps
from typing import Any, Callable, TypeVar

from twitchio.ext.commands import Context

from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class CooldownBucket(Enum):
    """Cooldown bucket types for rate limiting."""

    USER = "user"  # Per-user cooldown
    CHANNEL = "channel"  # Per-channel cooldown
    GLOBAL = "global"  # Global cooldown


class CooldownManager:
    """Remembers when each command was last used per bucket."""

    def __init__(self) -> None:
        # {command_name: {bucket_key: last_used_timestamp}}
        self._cooldowns: dict[str, dict[str, float]] = defaultdict(dict)

    @staticmethod
    def bucket_key(ctx: Context, bucket: CooldownBucket) -> str:
        if bucket == CooldownBucket.USER:
            return f"{ctx.channel.name}:{ctx.author.name}"
        if bucket == CooldownBucket.CHANNEL:
            return ctx.channel.name
        return "global"

    def try_acquire(
        self,
        command_name: str,
        ctx: Context,
        rate: float,
        bucket: CooldownBucket,
    ) -> tuple[bool, float]:
        """
        Start a cooldown unless one is already running.

        Returns:
            tuple[bool, float]: (allowed, seconds remaining if not allowed)
        """
        key = self.bucket_key(ctx, bucket)
        now = time.monotonic()
        last_used = self._cooldowns[command_name].get(key)
        if last_used is not None and now - last_used < rate:
            return False, rate - (now - last_used)
        self._cooldowns[command_name][key] = now
        return True, 0.0

    def clear(self) -> None:
        self._cooldowns.clear()


_cooldown_manager = CooldownManager()


def is_owner() -> Callable[[F], F]:
    """
    Decorator that restricts a command to the bot owner only.

    Usage:
        @commands.command()
        @is_owner()
        async def chirpreset(self, ctx):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self: Any, ctx: Context, *args: Any, **kwargs: Any) -> Any:
            config = getattr(self.bot, "config", None)
            owner = config.owner.lower() if config else ""

            if ctx.author.name.lower() != owner:
                logger.warning(
                    "Unauthorized owner command attempt by %s in %s",
                    ctx.author.name,
                    ctx.channel.name,
                )
                await ctx.send(f"@{ctx.author.name} This command is owner-only.")
                return None

            return await func(self, ctx, *args, **kwargs)

        wrapper._is_owner_only = True  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator


def cooldown(
    rate: float = 3.0,
    bucket: CooldownBucket = CooldownBucket.USER,
) -> Callable[[F], F]:
    """
    Decorator that adds a cooldown to a command.

    Calls made while the cooldown runs are dropped silently.

    Args:
        rate: Cooldown duration in seconds
        bucket: Cooldown bucket type (USER, CHANNEL, or GLOBAL)
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(self: Any, ctx: Context, *args: Any, **kwargs: Any) -> Any:
            allowed, remaining = _cooldown_manager.try_acquire(
                func.__name__, ctx, rate, bucket
            )
            if not allowed:
                logger.debug(
                    "Command %s on cooldown for %s (%.1fs remaining)",
                    func.__name__,
                    ctx.author.name,
                    remaining,
                )
                return None
            return await func(self, ctx, *args, **kwargs)

        wrapper._cooldown_rate = rate  # type: ignore[attr-defined]
        wrapper._cooldown_bucket = bucket  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
