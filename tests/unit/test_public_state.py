"""Unit tests for client-safe projections (src/gamification/public_state.py)"""
import copy

from src.gamification.public_state import build_public_rpg_state, to_public_xp_event
from src.gamification.xp_system import apply_xp
from src.models.rpg import PublicPlayerRpgState, PublicXpEvent


def test_build_public_state_fields(player):
    apply_xp(player, 170)
    state = build_public_rpg_state(player["rpg"])

    assert state["level"] == 2
    assert state["xp"] == 170
    assert state["xp_into_level"] == 70
    assert state["xp_for_level"] == 140
    assert state["xp_to_next"] == 70
    assert state["xp_progress"] == 0.5
    assert state["stats"] == {"hp": 20, "mp": 5, "coins": 0}
    assert state["inventory"] == {"items": []}
    assert "xp_log" not in state
    assert "flags" not in state
    PublicPlayerRpgState.model_validate(state)


def test_build_public_state_missing_record():
    state = build_public_rpg_state(None)
    assert state["level"] == 1
    assert state["xp"] == 0
    assert state["recent_events"] == []
    assert state["last_daily_reward_at"] is None


def test_build_public_state_does_not_touch_stored_record():
    stored = {"xp": "broken", "level": 40, "counters": None}
    before = copy.deepcopy(stored)

    state = build_public_rpg_state(stored)

    assert stored == before
    assert state["level"] == 1


def test_recent_events_are_first_five(player):
    for amount in range(1, 9):
        apply_xp(player, amount)

    state = build_public_rpg_state(player["rpg"])

    assert [event["amount"] for event in state["recent_events"]] == [8, 7, 6, 5, 4]
    # Full fidelity, including xp_before
    assert "xp_before" in state["recent_events"][0]


def test_public_state_collections_are_copies(player):
    player["rpg"]["achievements"].append("first_quest")
    state = build_public_rpg_state(player["rpg"])
    state["achievements"].append("cheat")
    state["counters"]["tasks_completed"] = 99

    assert player["rpg"]["achievements"] == ["first_quest"]
    assert player["rpg"]["counters"]["tasks_completed"] == 0


def test_to_public_xp_event_drops_xp_before(player):
    event = apply_xp(player, 120, metadata={"task_id": 1})
    public = to_public_xp_event(event)

    assert "xp_before" not in public
    assert public["xp_after"] == 120
    assert public["leveled_up"] is True
    assert public["metadata"] == {"task_id": 1}
    assert public["metadata"] is not event["metadata"]
    PublicXpEvent.model_validate(public)


def test_to_public_xp_event_coerces_leveled_up():
    public = to_public_xp_event({"amount": 1, "leveled_up": None, "metadata": "x"})
    assert public["leveled_up"] is False
    assert public["metadata"] == {}


def test_to_public_xp_event_non_dict():
    assert to_public_xp_event(None) is None
    assert to_public_xp_event([1]) is None
