"""
Text responders cog.

Replies to simple configured commands. The responses live in a JSON
file (TEXT_COMMANDS_FILE) shaped like:

    [
        {"trigger": ["discord", "dc"], "response": "Join us {user}: https://..."},
        {"trigger": "lurk", "response": "Enjoy the lurk {user}!"}
    ]

``{user}`` is replaced with the chatter's name.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Any

from twitchio.ext import commands

from chirpbot.utils.logging import get_logger

if TYPE_CHECKING:
    from twitchio import Message
    from chirpbot.bot import TwitchBot

logger = get_logger(__name__)


def load_responses(path: Optional[str | Path]) -> dict[str, str]:
    """
    Load trigger -> response pairs.

    A missing or malformed file yields no responders and a logged error;
    the rest of the bot keeps working.
    """
    if not path:
        return {}

    try:
        entries: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load text commands from %s: %s", path, e)
        return {}

    if not isinstance(entries, list):
        logger.error("Text commands file %s must contain a list", path)
        return {}

    responses: dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, dict) or "trigger" not in entry or "response" not in entry:
            logger.warning("Skipping malformed text command: %r", entry)
            continue
        triggers = entry["trigger"]
        if isinstance(triggers, str):
            triggers = [triggers]
        for trigger in triggers:
            responses[str(trigger).lower()] = str(entry["response"])

    logger.info("Loaded %d text command triggers", len(responses))
    return responses


def parse_command(content: str, prefix: str) -> Optional[str]:
    """Return the lowercased command name of a prefixed message."""
    if not content.startswith(prefix):
        return None
    parts = content[len(prefix):].split(maxsplit=1)
    if not parts:
        return None
    return parts[0].lower()


class Responders(commands.Cog):
    """Configured text commands."""

    def __init__(self, bot: TwitchBot, responses: Optional[dict[str, str]] = None) -> None:
        self.bot = bot
        if responses is None:
            responses = load_responses(bot.config.text_commands_file)
        self.responses = responses

    def response_for(self, command: str, username: str) -> Optional[str]:
        template = self.responses.get(command.lower())
        if template is None:
            return None
        return template.replace("{user}", username)

    @commands.Cog.event()
    async def event_message(self, message: Message) -> None:
        """Answer messages that match a configured trigger."""
        if message.echo or not message.author or not message.content:
            return

        command = parse_command(message.content, self.bot.config.prefix)
        if command is None or self.bot.get_command(command) is not None:
            return

        response = self.response_for(command, message.author.name)
        if response is None:
            return

        await message.channel.send(response)
        logger.debug("Text command %s used by %s", command, message.author.name)


def prepare(bot: TwitchBot) -> None:
    """Prepare function called by TwitchIO when loading the cog."""
    bot.add_cog(Responders(bot))
