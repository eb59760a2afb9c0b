"""
Escalation state machine behind the rubber chicken feedback loop.

Transitions:

    inactive + rare   -> active, repeat_count = 1     (entered)
    active   + rare   -> repeat_count += 1            (continued)
    active   + normal -> inactive, repeat_count = 0   (ended)
    inactive + normal -> unchanged

``repeat_count`` is 0 whenever the state is inactive. Nothing ends an
escalation except a normal draw or an explicit ``reset()``.
"""

from __future__ import annotations

import threading
from typing import NamedTuple

from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)


class DrawTransition(NamedTuple):
    """What a single recorded draw did to the escalation state."""

    entered_escalation: bool
    continued_escalation: bool
    repeat_count: int
    ended_escalation: bool = False


class EscalationState:
    """
    Lock-guarded escalation state.

    ``lock`` is a plain ``threading.Lock``. Callers that need a draw and
    its transition to be atomic hold it themselves and call
    ``record_draw_locked``; everyone else uses ``record_draw``.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._active = False
        self._repeat_count = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def repeat_count(self) -> int:
        return self._repeat_count

    def snapshot(self) -> tuple[bool, int]:
        """Consistent ``(active, repeat_count)`` pair."""
        with self.lock:
            return self._active, self._repeat_count

    def record_draw(self, is_rare: bool) -> DrawTransition:
        """Apply one draw outcome atomically."""
        with self.lock:
            return self.record_draw_locked(is_rare)

    def record_draw_locked(self, is_rare: bool) -> DrawTransition:
        """Apply one draw outcome. The caller must hold ``lock``."""
        if not self._active:
            if not is_rare:
                return DrawTransition(False, False, 0)
            self._active = True
            self._repeat_count = 1
            logger.info("Escalation started")
            return DrawTransition(True, False, 1)

        if is_rare:
            self._repeat_count += 1
            logger.debug("Escalation continues, repeat %d", self._repeat_count)
            return DrawTransition(False, True, self._repeat_count)

        logger.info("Escalation ended after %d repeats", self._repeat_count)
        self._active = False
        self._repeat_count = 0
        return DrawTransition(False, False, 0, ended_escalation=True)

    def reset(self) -> bool:
        """
        Force the inactive state, e.g. when the stream ends.

        Returns:
            bool: True if an escalation was running
        """
        with self.lock:
            was_active = self._active
            self._active = False
            self._repeat_count = 0
        if was_active:
            logger.info("Escalation reset")
        return was_active
