"""
!chirp command handler.

Each invocation draws one sound. Drawing the rubber chicken scream
starts an escalation during which the scream dominates the pool, so it
tends to play again and again until a normal chirp breaks the run. The
draw and the state transition happen under a single lock; the
achievement write for a mate who starts an escalation happens after the
lock is released.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from chirpbot.utils.achievements import AchievementKind, AchievementLedger, LedgerResult
from chirpbot.utils.escalation import DrawTransition, EscalationState
from chirpbot.utils.logging import get_logger
from chirpbot.utils.sound_pool import RandomSource, SoundPool

logger = get_logger(__name__)


class ChirpOutcome(Enum):
    """How a draw related to the escalation loop."""

    NORMAL = "normal"
    ENTERED = "entered"
    CONTINUED = "continued"
    ENDED = "ended"


@dataclass(frozen=True)
class PlaybackDecision:
    """The sound to play for one !chirp."""

    selected_sound_id: str
    is_escalation: bool
    repeat_count_at_draw: int
    outcome: ChirpOutcome = ChirpOutcome.NORMAL
    invoker: str = ""


class Ledger(Protocol):
    def record_first(
        self, mate_name: str, kind: AchievementKind, data: Optional[dict] = None
    ) -> LedgerResult:
        ...


def _outcome(transition: DrawTransition) -> ChirpOutcome:
    if transition.entered_escalation:
        return ChirpOutcome.ENTERED
    if transition.continued_escalation:
        return ChirpOutcome.CONTINUED
    if transition.ended_escalation:
        return ChirpOutcome.ENDED
    return ChirpOutcome.NORMAL


class ChirpCommandHandler:
    """
    Composes the sound pool, escalation state and achievement ledger.

    One instance is created at bot start and shared by every !chirp.

    Args:
        pool: Sound catalogue
        ledger: Achievement ledger; None disables achievements
        rng: Random source, seedable for reproducible draws
        state: Escalation state; a fresh one by default
    """

    def __init__(
        self,
        pool: SoundPool,
        ledger: Optional[Ledger] = None,
        rng: Optional[RandomSource] = None,
        state: Optional[EscalationState] = None,
    ) -> None:
        self.pool = pool
        self.ledger = ledger
        self.rng: RandomSource = rng if rng is not None else random.Random()
        self.state = state if state is not None else EscalationState()

    def handle(self, invoker: str) -> PlaybackDecision:
        """
        Run one !chirp for ``invoker``.

        Never rejects or rate-limits; never raises because of a ledger
        failure.
        """
        with self.state.lock:
            escalated = self.state.active
            entry = self.pool.draw(self.rng, escalated=escalated)
            transition = self.state.record_draw_locked(entry.is_rare)

        decision = PlaybackDecision(
            selected_sound_id=entry.sound_id,
            is_escalation=entry.is_rare,
            repeat_count_at_draw=transition.repeat_count,
            outcome=_outcome(transition),
            invoker=invoker,
        )
        logger.debug(
            "%s chirped %s (%s, repeat %d)",
            invoker,
            decision.selected_sound_id,
            decision.outcome.value,
            decision.repeat_count_at_draw,
        )

        if transition.entered_escalation and self.ledger is not None:
            try:
                self.ledger.record_first(
                    invoker,
                    AchievementKind.CHICKEN_RUN,
                    {"sound": entry.sound_id},
                )
            except Exception as e:
                logger.warning("Achievement ledger failed for %s: %s", invoker, e)

        return decision

    def reset_escalation(self) -> bool:
        """Stream-end hook. Returns True if an escalation was cut short."""
        return self.state.reset()

    def status(self) -> tuple[bool, int]:
        """Current ``(active, repeat_count)``."""
        return self.state.snapshot()


def build_chirp_handler(
    pool: SoundPool,
    ledger: Optional[AchievementLedger] = None,
    seed: Optional[int] = None,
) -> ChirpCommandHandler:
    """Create the process-wide handler; ``seed`` makes draws reproducible."""
    return ChirpCommandHandler(pool, ledger=ledger, rng=random.Random(seed))
