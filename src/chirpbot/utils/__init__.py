"""
Utility modules for the chirp bot.

Provides:
- logging: Logging setup with secret filtering
- permissions: Owner check and cooldown decorators
- database: SQLite store for mates, achievements and chat messages
- sound_pool: Weighted chirp sound catalogue
- escalation: Rubber chicken escalation state machine
- achievements: Achievement ledger
- chirp: The !chirp command handler
- playback: External sound player
- tattoy: Terminal emote plugin client
"""

from chirpbot.utils.logging import get_logger, setup_logging
from chirpbot.utils.permissions import is_owner, cooldown, CooldownBucket
from chirpbot.utils.database import get_database, DatabaseManager, DuplicateAchievementError
from chirpbot.utils.sound_pool import SoundPool, SoundEntry, SoundCategory, SoundPoolError
from chirpbot.utils.escalation import EscalationState, DrawTransition
from chirpbot.utils.achievements import AchievementLedger, AchievementKind, LedgerResult
from chirpbot.utils.chirp import ChirpCommandHandler, ChirpOutcome, PlaybackDecision
from chirpbot.utils.playback import SoundPlayer
from chirpbot.utils.tattoy import TattoyClient, EmoteMessage, TattoyUnavailableError

__all__ = [
    "get_logger",
    "setup_logging",
    "is_owner",
    "cooldown",
    "CooldownBucket",
    "get_database",
    "DatabaseManager",
    "DuplicateAchievementError",
    "SoundPool",
    "SoundEntry",
    "SoundCategory",
    "SoundPoolError",
    "EscalationState",
    "DrawTransition",
    "AchievementLedger",
    "AchievementKind",
    "LedgerResult",
    "ChirpCommandHandler",
    "ChirpOutcome",
    "PlaybackDecision",
    "SoundPlayer",
    "TattoyClient",
    "EmoteMessage",
    "TattoyUnavailableError",
]
