"""
Tests for the chirp sound pool.

These tests verify:
- Eager validation of the catalogue
- Effective weights in and out of escalation
- Deterministic weighted draws
"""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chirpbot.utils.sound_pool import (  # noqa: E402
    SoundCategory,
    SoundEntry,
    SoundPool,
    SoundPoolError,
)


class FixedRandom:
    """Random source returning a fixed script of values."""

    def __init__(self, values: list[float]) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


def make_pool(normal_weight: int = 99, rare_weight: int = 1, dominance: float = 4.0) -> SoundPool:
    return SoundPool(
        [SoundEntry("chirp.mp3", SoundCategory.NORMAL, normal_weight)],
        SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION, rare_weight),
        escalation_dominance=dominance,
        sounds_dir="/sounds",
    )


class TestValidation:
    """Tests for catalogue validation."""

    def test_empty_normal_pool_rejected(self) -> None:
        with pytest.raises(SoundPoolError):
            SoundPool([], SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION))

    def test_zero_weight_rejected(self) -> None:
        with pytest.raises(SoundPoolError):
            make_pool(normal_weight=0)
        with pytest.raises(SoundPoolError):
            make_pool(rare_weight=0)

    def test_non_integer_weight_rejected(self) -> None:
        with pytest.raises(SoundPoolError):
            SoundPool(
                [SoundEntry("chirp.mp3", SoundCategory.NORMAL, 1.5)],  # type: ignore[arg-type]
                SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION),
            )

    def test_wrong_categories_rejected(self) -> None:
        with pytest.raises(SoundPoolError):
            SoundPool(
                [SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION)],
                SoundEntry("other.mp3", SoundCategory.RARE_ESCALATION),
            )
        with pytest.raises(SoundPoolError):
            SoundPool(
                [SoundEntry("chirp.mp3")],
                SoundEntry("tweet.mp3", SoundCategory.NORMAL),
            )

    def test_non_positive_dominance_rejected(self) -> None:
        with pytest.raises(SoundPoolError):
            make_pool(dominance=0)

    def test_error_is_value_error(self) -> None:
        assert issubclass(SoundPoolError, ValueError)

    def test_from_config(self) -> None:
        from chirpbot.config import Config

        config = Config(
            client_id="id",
            client_secret="secret",
            oauth_token="oauth:token",
            bot_nick="bot",
            channels=["chan"],
            owner="owner",
            sounds_dir="/srv/sounds",
            chirp_sounds=[("a.mp3", 1), ("b.mp3", 3)],
            chirp_rare_sound="scream.mp3",
        )
        pool = SoundPool.from_config(config)

        assert [e.sound_id for e in pool.entries] == ["a.mp3", "b.mp3", "scream.mp3"]
        assert pool.rare.is_rare
        assert pool.path_for(pool.rare) == Path("/srv/sounds/scream.mp3")
        assert pool.path_for("great_scott.mp3") == Path("/srv/sounds/great_scott.mp3")


class TestWeights:
    """Tests for effective weights."""

    def test_nominal_weights(self) -> None:
        pool = make_pool()
        assert pool.weights() == [99.0, 1.0]
        assert pool.rare_probability() == pytest.approx(0.01)

    def test_escalated_rare_dominates(self) -> None:
        pool = make_pool(dominance=4.0)
        assert pool.weights(escalated=True) == [99.0, 396.0]
        assert pool.rare_probability(escalated=True) == pytest.approx(0.8)

    def test_uniform_normal_pool(self) -> None:
        pool = SoundPool(
            [SoundEntry("a.mp3"), SoundEntry("b.mp3"), SoundEntry("c.mp3")],
            SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION),
        )
        assert pool.weights() == [1.0, 1.0, 1.0, 1.0]
        assert len(pool) == 4


class TestDraw:
    """Tests for weighted sampling."""

    def test_draw_follows_random_stream(self) -> None:
        pool = make_pool()
        rng = FixedRandom([0.1, 0.995, 0.5])

        assert pool.draw(rng).sound_id == "chirp.mp3"
        assert pool.draw(rng).sound_id == "scream.mp3"
        # Same value is rare once escalated: 0.5 * 495 = 247.5 > 99
        assert pool.draw(rng, escalated=True).sound_id == "scream.mp3"

    def test_draw_is_reproducible_with_seed(self) -> None:
        pool = SoundPool(
            [SoundEntry("a.mp3"), SoundEntry("b.mp3", weight=2)],
            SoundEntry("scream.mp3", SoundCategory.RARE_ESCALATION),
        )
        first = [pool.draw(random.Random(42)).sound_id for _ in range(5)]
        rng_a, rng_b = random.Random(7), random.Random(7)
        seq_a = [pool.draw(rng_a).sound_id for _ in range(50)]
        seq_b = [pool.draw(rng_b).sound_id for _ in range(50)]

        assert len(set(first)) == 1
        assert seq_a == seq_b

    def test_draw_top_of_range_returns_rare(self) -> None:
        pool = make_pool()
        rng = FixedRandom([0.9999999999])
        assert pool.draw(rng).is_rare

    def test_rare_frequency_is_small(self) -> None:
        pool = make_pool()
        rng = random.Random(1234)
        rare = sum(pool.draw(rng).is_rare for _ in range(10000))
        assert 40 < rare < 200
