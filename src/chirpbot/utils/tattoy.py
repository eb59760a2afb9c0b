"""
Client for the Tattoy terminal emote plugin.

The plugin listens on a unix socket for newline-delimited JSON objects
of the form ``{"username": ..., "regexish": ..., "emote": ...}`` and
draws the emote over the first place ``regexish`` appears in the
streamer's terminal.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict, dataclass

from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SOCKET_PATH = "/tmp/tattoy-twitch.sock"


class TattoyUnavailableError(Exception):
    """Raised when the plugin socket can't be reached."""


@dataclass(frozen=True)
class EmoteMessage:
    """One emote render request."""

    username: str
    regexish: str
    emote: str

    def encode(self) -> bytes:
        return (json.dumps(asdict(self)) + "\n").encode("utf-8")


class TattoyClient:
    """
    Sends emote requests to the plugin.

    A connection is opened per message; the plugin treats every
    connection as a new bot session.
    """

    def __init__(self, socket_path: str = DEFAULT_SOCKET_PATH, timeout: float = 2.0) -> None:
        self.socket_path = socket_path
        self.timeout = timeout

    async def send(self, message: EmoteMessage) -> None:
        """
        Deliver one message.

        Raises:
            TattoyUnavailableError: Socket missing, refused or too slow
        """
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(self.socket_path),
                timeout=self.timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise TattoyUnavailableError(
                f"Tattoy socket {self.socket_path} unavailable: {e}"
            ) from e

        try:
            writer.write(message.encode())
            await asyncio.wait_for(writer.drain(), timeout=self.timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise TattoyUnavailableError(f"Failed to send emote: {e}") from e
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

        logger.debug("Sent emote %s for %s", message.emote, message.username)
