"""
Weighted sound catalogue for !chirp.

The pool holds any number of normal chirps plus exactly one rare
escalation sound (the rubber chicken scream). Outside escalation the
scream has its small nominal weight; while escalated its weight becomes
a multiple of the whole normal pool so it keeps coming back.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chirpbot.config import Config


class SoundPoolError(ValueError):
    """Raised at startup when the sound catalogue is unusable."""


class RandomSource(Protocol):
    """Anything with ``random.Random.random`` semantics: a float in [0, 1)."""

    def random(self) -> float:
        ...


class SoundCategory(Enum):
    """Sound categories."""

    NORMAL = "normal"
    RARE_ESCALATION = "rare_escalation"


@dataclass(frozen=True)
class SoundEntry:
    """A single playable sound."""

    sound_id: str
    category: SoundCategory = SoundCategory.NORMAL
    weight: int = 1

    @property
    def is_rare(self) -> bool:
        return self.category is SoundCategory.RARE_ESCALATION


class SoundPool:
    """
    Immutable weighted catalogue of chirp sounds.

    Args:
        normal: Normal entries; at least one is required
        rare: The single rare escalation entry
        escalation_dominance: While escalated, the rare entry weighs this
            many times the sum of all normal weights
        sounds_dir: Directory the sound ids are resolved against

    Raises:
        SoundPoolError: If the catalogue is empty or any weight is invalid
    """

    def __init__(
        self,
        normal: list[SoundEntry],
        rare: SoundEntry,
        escalation_dominance: float = 4.0,
        sounds_dir: str | Path = ".",
    ) -> None:
        if not normal:
            raise SoundPoolError("Sound pool needs at least one normal sound")
        for entry in normal:
            if entry.category is not SoundCategory.NORMAL:
                raise SoundPoolError(f"{entry.sound_id} is not a normal sound")
            self._check_weight(entry)
        if rare.category is not SoundCategory.RARE_ESCALATION:
            raise SoundPoolError(f"{rare.sound_id} is not a rare escalation sound")
        self._check_weight(rare)
        if not escalation_dominance > 0:
            raise SoundPoolError(
                f"Escalation dominance must be positive, got {escalation_dominance}"
            )

        self._normal = tuple(normal)
        self._rare = rare
        self._dominance = float(escalation_dominance)
        self.sounds_dir = Path(sounds_dir)
        self._normal_total = sum(entry.weight for entry in self._normal)

    @staticmethod
    def _check_weight(entry: SoundEntry) -> None:
        if isinstance(entry.weight, bool) or not isinstance(entry.weight, int) or entry.weight <= 0:
            raise SoundPoolError(
                f"Sound {entry.sound_id!r} needs a positive integer weight, got {entry.weight!r}"
            )
        if not entry.sound_id:
            raise SoundPoolError("Sound ids must not be empty")

    @classmethod
    def from_config(cls, config: Config) -> SoundPool:
        """Build the pool from the bot configuration."""
        normal = [
            SoundEntry(name, SoundCategory.NORMAL, weight)
            for name, weight in config.chirp_sounds
        ]
        rare = SoundEntry(
            config.chirp_rare_sound,
            SoundCategory.RARE_ESCALATION,
            config.chirp_rare_weight,
        )
        return cls(
            normal,
            rare,
            escalation_dominance=config.chirp_escalation_dominance,
            sounds_dir=config.sounds_dir,
        )

    @property
    def entries(self) -> tuple[SoundEntry, ...]:
        """All entries in draw order, the rare entry last."""
        return self._normal + (self._rare,)

    @property
    def rare(self) -> SoundEntry:
        return self._rare

    def weights(self, escalated: bool = False) -> list[float]:
        """Effective weights in the same order as ``entries``."""
        if escalated:
            rare_weight = self._normal_total * self._dominance
        else:
            rare_weight = float(self._rare.weight)
        return [float(entry.weight) for entry in self._normal] + [rare_weight]

    def rare_probability(self, escalated: bool = False) -> float:
        """Chance of drawing the rare entry under the given mode."""
        weights = self.weights(escalated)
        return weights[-1] / sum(weights)

    def draw(self, rng: RandomSource, escalated: bool = False) -> SoundEntry:
        """
        Pick one entry by weighted sampling.

        Consumes exactly one ``rng.random()`` value, so a fixed random
        stream always yields the same sequence of sounds.
        """
        weights = self.weights(escalated)
        point = rng.random() * sum(weights)
        cumulative = 0.0
        for entry, weight in zip(self.entries, weights):
            cumulative += weight
            if point < cumulative:
                return entry
        # Float rounding can leave point == total
        return self.entries[-1]

    def path_for(self, entry: SoundEntry | str) -> Path:
        """Resolve a sound entry, or any sound file name, against ``sounds_dir``."""
        name = entry.sound_id if isinstance(entry, SoundEntry) else entry
        return self.sounds_dir / name

    def __len__(self) -> int:
        return len(self._normal) + 1
