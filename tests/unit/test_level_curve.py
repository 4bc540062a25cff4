"""Unit tests for the level curve (src/gamification/level_curve.py)"""
import math
import pytest

from src.gamification.level_curve import (
    is_finite_number,
    xp_required_for_level,
    level_from_xp,
    level_progress,
)
from src.gamification.xp_config import XpConfig


# ============================================================================
# Thresholds
# ============================================================================

def test_xp_required_for_first_levels():
    """Level 2 costs 100 XP and each later level 40 more than the last"""
    assert xp_required_for_level(1) == 0
    assert xp_required_for_level(2) == 100
    assert xp_required_for_level(3) == 240
    assert xp_required_for_level(4) == 420
    assert xp_required_for_level(5) == 640


def test_xp_required_matches_closed_form():
    for level in range(1, 100):
        expected = 100 * (level - 1) + 20 * (level - 1) * (level - 2)
        assert xp_required_for_level(level) == expected


@pytest.mark.parametrize("level", [0, -3, 1, None, "5", float("nan"), True])
def test_xp_required_for_invalid_or_first_level_is_zero(level):
    assert xp_required_for_level(level) == 0


def test_thresholds_strictly_increasing():
    thresholds = [xp_required_for_level(level) for level in range(1, 100)]
    assert all(later > earlier for earlier, later in zip(thresholds, thresholds[1:]))


# ============================================================================
# Level From XP
# ============================================================================

def test_level_from_xp_round_trips_thresholds():
    """Reaching a threshold exactly lands on that level"""
    for level in range(1, 100):
        assert level_from_xp(xp_required_for_level(level)) == level


def test_level_from_xp_just_below_threshold():
    assert level_from_xp(99) == 1
    assert level_from_xp(100) == 2
    assert level_from_xp(239) == 2
    assert level_from_xp(240) == 3


def test_level_from_xp_capped_at_99():
    assert level_from_xp(10 ** 9) == 99


@pytest.mark.parametrize("xp", [0, -50, None, "100", float("inf"), float("nan"), False])
def test_level_from_invalid_xp_is_one(xp):
    assert level_from_xp(xp) == 1


def test_level_from_xp_uses_config():
    config = XpConfig(level_base_requirement=10, level_step_requirement=0, max_level=5)
    assert level_from_xp(25, config) == 3
    assert level_from_xp(1000, config) == 5


# ============================================================================
# Level Progress
# ============================================================================

def test_level_progress_mid_level():
    result = level_progress(2, 170)

    assert result["xp_into_level"] == 70
    assert result["xp_for_level"] == 140
    assert result["xp_to_next"] == 70
    assert result["progress"] == pytest.approx(0.5)


def test_level_progress_parts_sum_to_level_size():
    for xp in range(0, 2000, 37):
        level = level_from_xp(xp)
        result = level_progress(level, xp)
        assert result["xp_into_level"] + result["xp_to_next"] == result["xp_for_level"]
        assert 0.0 <= result["progress"] <= 1.0


def test_level_progress_sanitizes_inputs():
    """Non-finite XP counts as 0 and invalid levels as 1"""
    result = level_progress(float("nan"), float("inf"))

    assert result["xp_into_level"] == 0
    assert result["xp_for_level"] == 100
    assert result["xp_to_next"] == 100
    assert result["progress"] == 0.0


def test_level_progress_clamps_when_xp_beyond_level():
    result = level_progress(1, 500)
    assert result["progress"] == 1.0
    assert result["xp_to_next"] == 0


def test_is_finite_number():
    assert is_finite_number(3)
    assert is_finite_number(-2.5)
    assert not is_finite_number(True)
    assert not is_finite_number(math.inf)
    assert not is_finite_number("1")
