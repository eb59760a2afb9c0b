"""
Achievement ledger.

Turns "this mate just did something for the first time" into a row in
the achievement table. The outcome is reported as a LedgerResult rather
than an exception: a duplicate is expected and ignored, anything else is
logged and otherwise ignored so the triggering command still completes.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from chirpbot.utils.database import DatabaseManager, DuplicateAchievementError
from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)


class AchievementKind(Enum):
    """Achievements a mate can earn."""

    CHICKEN_RUN = "ChickenRun"


class LedgerResult(Enum):
    """Outcome of a ledger write."""

    RECORDED = "recorded"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class AchievementLedger:
    """Thin adapter between command handlers and the achievement table."""

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def record_first(
        self,
        mate_name: str,
        kind: AchievementKind,
        data: Optional[dict[str, Any]] = None,
    ) -> LedgerResult:
        """
        Record an achievement the first time a mate earns it.

        Args:
            mate_name: Twitch username of the achiever
            kind: Achievement earned
            data: Optional details stored as JSON

        Returns:
            LedgerResult: RECORDED, DUPLICATE or FAILED
        """
        try:
            mate_id = self.db.resolve_or_create_mate(mate_name)
            self.db.insert_achievement(
                mate_id,
                kind.value,
                datetime.now(timezone.utc),
                data,
            )
        except DuplicateAchievementError:
            logger.debug("%s already has %s", mate_name, kind.value)
            return LedgerResult.DUPLICATE
        except (sqlite3.Error, OSError) as e:
            logger.warning(
                "Could not record %s for %s: %s", kind.value, mate_name, e
            )
            return LedgerResult.FAILED

        logger.info("Achievement %s unlocked by %s", kind.value, mate_name)
        return LedgerResult.RECORDED
