"""
Configuration management for the chirp bot.

Loads configuration from environment variables and .env files,
validates required fields, and provides type-safe access.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for the chirp bot.

    All configuration values are loaded from environment variables
    or a .env file. Required fields will raise ValueError if missing.

    Attributes:
        client_id: Twitch application client ID
        client_secret: Twitch application client secret
        oauth_token: Bot OAuth token for chat access
        bot_nick: Bot's Twitch username
        channels: List of channels to join
        owner: Bot owner's Twitch username
        prefix: Command prefix (default: !)
        log_level: Logging level (default: INFO)
        log_file: Optional log file path
        database_path: Path to the SQLite database file
        sounds_dir: Directory holding every sound file the bot plays
        chirp_sounds: Normal chirp sounds as (file name, weight) pairs
        chirp_rare_sound: The rubber chicken scream
        chirp_rare_weight: Weight of the scream outside escalation
        chirp_escalation_dominance: While escalated, the scream weighs this
            many times the whole normal pool
        player_command: External program used to play sounds
        player_volume: Volume passed to the player
        arrival_cooldown_hours: Minimum hours between two arrival sounds
        text_commands_file: Optional JSON file of text responders
        tattoy_socket_path: Unix socket of the terminal emote plugin
        raid_sound: Sound played when the channel gets raided
        follow_sound: Sound played for a new follower
        follow_check_interval: Seconds between follower checks
        stream_check_interval: Seconds between stream online checks
    """

    # Required fields
    client_id: str
    client_secret: str
    oauth_token: str
    bot_nick: str
    channels: list[str]
    owner: str

    # Optional fields with defaults
    prefix: str = "!"
    log_level: str = "INFO"
    log_file: str | None = None
    database_path: str = "data/chirpbot.db"
    sounds_dir: str = "data/sounds"
    chirp_sounds: list[tuple[str, int]] = field(
        default_factory=lambda: [("chirp.mp3", 1)]
    )
    chirp_rare_sound: str = "rubber_chicken_scream.mp3"
    chirp_rare_weight: int = 1
    chirp_escalation_dominance: float = 4.0
    player_command: str = "mpv"
    player_volume: int = 50
    arrival_cooldown_hours: int = 12
    text_commands_file: str | None = None
    tattoy_socket_path: str = "/tmp/tattoy-twitch.sock"
    raid_sound: str | None = "hand_of_god.mp3"
    follow_sound: str | None = "great_scott.mp3"
    follow_check_interval: int = 60
    stream_check_interval: int = 60

    # Computed/derived fields
    _secrets: list[str] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        """Initialize secrets list for log filtering."""
        # Use object.__setattr__ because dataclass is frozen
        secrets = [
            self.client_id,
            self.client_secret,
            self.oauth_token,
        ]
        object.__setattr__(self, "_secrets", [s for s in secrets if s])

    @property
    def secrets(self) -> list[str]:
        """Get list of secret values that should be filtered from logs."""
        return self._secrets

    def get_oauth_token_clean(self) -> str:
        """Get OAuth token without 'oauth:' prefix if present."""
        token = self.oauth_token
        if token.startswith("oauth:"):
            return token[6:]
        return token


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean from environment variable string."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(value: str | None, default: int) -> int:
    """Parse an integer from environment variable string."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, default: float) -> float:
    """Parse a float from environment variable string."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_channels(value: str | None) -> list[str]:
    """Parse comma-separated channel list."""
    if not value:
        return []
    # Split by comma, strip whitespace, remove empty strings, remove # prefix
    channels = [ch.strip().lstrip("#") for ch in value.split(",")]
    return [ch for ch in channels if ch]


def _parse_sounds(value: str | None) -> list[tuple[str, int]]:
    """
    Parse a comma-separated sound list.

    Each item is ``name`` or ``name:weight``. A missing or unparsable
    weight counts as 1 so the normal pool stays uniform by default.
    Non-positive weights are kept as-is for the sound pool to reject.
    """
    if not value:
        return []
    sounds: list[tuple[str, int]] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, _, weight = item.partition(":")
        sounds.append((name.strip(), _parse_int(weight.strip() or None, 1)))
    return sounds


def load_config(env_file: str | Path | None = None) -> Config:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory and parent directories.

    Returns:
        Config: Validated configuration object

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    errors: list[str] = []

    # Required fields
    client_id = os.getenv("TWITCH_CLIENT_ID", "")
    if not client_id or client_id == "your_client_id_here":
        errors.append("TWITCH_CLIENT_ID is required")

    client_secret = os.getenv("TWITCH_CLIENT_SECRET", "")
    if not client_secret or client_secret == "your_client_secret_here":
        errors.append("TWITCH_CLIENT_SECRET is required")

    oauth_token = os.getenv("TWITCH_OAUTH_TOKEN", "")
    if not oauth_token or oauth_token == "oauth:your_token_here":
        errors.append("TWITCH_OAUTH_TOKEN is required")

    bot_nick = os.getenv("TWITCH_BOT_NICK", "")
    if not bot_nick or bot_nick == "your_bot_username":
        errors.append("TWITCH_BOT_NICK is required")

    channels = _parse_channels(os.getenv("TWITCH_CHANNELS"))
    if not channels:
        errors.append("TWITCH_CHANNELS is required (comma-separated list)")

    owner = os.getenv("BOT_OWNER", "")
    if not owner or owner == "your_twitch_username":
        errors.append("BOT_OWNER is required")

    if errors:
        error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)

    prefix = os.getenv("BOT_PREFIX", "!")
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file = os.getenv("LOG_FILE") or None
    database_path = os.getenv("DATABASE_PATH", "data/chirpbot.db")

    # Sounds
    sounds_dir = os.getenv("SOUNDS_DIR", "data/sounds")
    chirp_sounds = _parse_sounds(os.getenv("CHIRP_SOUNDS")) or [("chirp.mp3", 1)]
    chirp_rare_sound = os.getenv("CHIRP_RARE_SOUND", "rubber_chicken_scream.mp3")
    chirp_rare_weight = _parse_int(os.getenv("CHIRP_RARE_WEIGHT"), 1)
    chirp_escalation_dominance = _parse_float(os.getenv("CHIRP_ESCALATION_DOMINANCE"), 4.0)
    player_command = os.getenv("PLAYER_COMMAND", "mpv")
    player_volume = _parse_int(os.getenv("PLAYER_VOLUME"), 50)
    raid_sound = os.getenv("RAID_SOUND", "hand_of_god.mp3") or None
    follow_sound = os.getenv("FOLLOW_SOUND", "great_scott.mp3") or None

    arrival_cooldown_hours = _parse_int(os.getenv("ARRIVAL_COOLDOWN_HOURS"), 12)
    text_commands_file = os.getenv("TEXT_COMMANDS_FILE") or None
    tattoy_socket_path = os.getenv("TATTOY_SOCKET_PATH", "/tmp/tattoy-twitch.sock")
    stream_check_interval = _parse_int(os.getenv("STREAM_CHECK_INTERVAL"), 60)
    follow_check_interval = _parse_int(os.getenv("FOLLOW_CHECK_INTERVAL"), 60)

    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if log_level not in valid_levels:
        log_level = "INFO"

    return Config(
        client_id=client_id,
        client_secret=client_secret,
        oauth_token=oauth_token,
        bot_nick=bot_nick,
        channels=channels,
        owner=owner,
        prefix=prefix,
        log_level=log_level,
        log_file=log_file,
        database_path=database_path,
        sounds_dir=sounds_dir,
        chirp_sounds=chirp_sounds,
        chirp_rare_sound=chirp_rare_sound,
        chirp_rare_weight=chirp_rare_weight,
        chirp_escalation_dominance=chirp_escalation_dominance,
        player_command=player_command,
        player_volume=player_volume,
        arrival_cooldown_hours=arrival_cooldown_hours,
        text_commands_file=text_commands_file,
        tattoy_socket_path=tattoy_socket_path,
        raid_sound=raid_sound,
        follow_sound=follow_sound,
        stream_check_interval=stream_check_interval,
        follow_check_interval=follow_check_interval,
    )
