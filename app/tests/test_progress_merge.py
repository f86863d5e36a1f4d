# app/tests/test_progress_merge.py
from datetime import datetime, timezone

import pytest

from app.core.errors import InternalError
from app.schemas import WatchedProgressIn
from app.services.progress_merge import (
    apply_episode_toggle,
    coalesce,
    episode_key,
    merge_episode_counts,
    merge_tv_progress,
    parse_int,
    resolve_episode_state,
    resolve_total_seasons,
    resolve_tv_status,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _req(**body) -> WatchedProgressIn:
    base = {"imdb_id": "tt1", "media_type": "tv", "title": "X"}
    base.update(body)
    return WatchedProgressIn.model_validate(base)


# ── coalesce / parsing ───────────────────────────────────────────────────────

def test_coalesce_prefers_request_then_existing_then_default():
    assert coalesce("new", "old") == "new"
    assert coalesce(None, "old") == "old"
    assert coalesce("", "old") == "old"
    assert coalesce(None, None) is None
    assert coalesce(None, None, "fallback") == "fallback"
    # 0 is a real value, not "absent"
    assert coalesce(0, 5) == 0


@pytest.mark.parametrize(
    "raw, expected",
    [(3, 3), ("3", 3), (" 7 ", 7), (2.0, 2), (2.5, None), ("abc", None), (None, None), (True, None)],
)
def test_parse_int(raw, expected):
    assert parse_int(raw) == expected


def test_total_seasons_non_numeric_falls_back_to_existing():
    assert resolve_total_seasons("5", 3) == 5
    assert resolve_total_seasons("five", 3) == 3
    assert resolve_total_seasons(None, None) is None


def test_episode_key_format():
    assert episode_key(1, 3) == "S1E3"
    assert episode_key(10, 12) == "S10E12"


# ── episode state ────────────────────────────────────────────────────────────

def test_resolve_episode_state_copies_existing():
    stored = {"S1E1": True}
    episodes, last = resolve_episode_state(stored, {"season": 1, "episode": 1})
    episodes["S1E2"] = True
    assert stored == {"S1E1": True}
    assert last == {"season": 1, "episode": 1}


def test_resolve_episode_state_override_resets():
    episodes, last = resolve_episode_state(
        {"S1E1": True}, {"season": 1, "episode": 1}, episodes_override={}, last_override=None
    )
    assert episodes == {}
    assert last is None


def test_toggle_on_sets_last_watched():
    episodes, last = apply_episode_toggle({}, None, 2, 4, True, now=NOW)
    assert episodes == {"S2E4": True}
    assert last == {"season": 2, "episode": 4, "timestamp": NOW.isoformat()}


def test_toggle_on_twice_is_idempotent():
    once = apply_episode_toggle({}, None, 1, 1, True, now=NOW)
    twice = apply_episode_toggle(dict(once[0]), once[1], 1, 1, True, now=NOW)
    assert once == twice


def test_toggle_off_clears_matching_last_watched_only():
    last = {"season": 1, "episode": 2, "timestamp": "t"}

    episodes, new_last = apply_episode_toggle({"S1E1": True, "S1E2": True}, dict(last), 1, 1, False)
    assert episodes == {"S1E2": True}
    assert new_last == last

    episodes, new_last = apply_episode_toggle(episodes, new_last, 1, 2, False)
    assert episodes == {}
    # not recomputed to S1E1
    assert new_last is None


def test_toggle_off_absent_episode_is_noop_on_map():
    episodes, last = apply_episode_toggle({"S1E1": True}, None, 3, 3, False)
    assert episodes == {"S1E1": True}
    assert last is None


# ── season counts ────────────────────────────────────────────────────────────

def test_merge_episode_counts_is_additive(caplog):
    merged = merge_episode_counts({"1": 10, "2": 8}, {"2": "9", 3: 12, "4": "lots", "5": -1})
    assert merged == {"1": 10, "2": 9, "3": 12}
    assert "Invalid episode count for season 4" in caplog.text


def test_merge_episode_counts_handles_missing_inputs():
    assert merge_episode_counts(None, None) == {}
    assert merge_episode_counts({"1": 3}, None) == {"1": 3}


# ── status ───────────────────────────────────────────────────────────────────

def test_status_prefers_valid_request_then_existing():
    assert resolve_tv_status("completed", "on_hold") == "completed"
    assert resolve_tv_status(None, "on_hold") == "on_hold"
    assert resolve_tv_status("binging", "dropped") == "dropped"


def test_status_defaults_to_watching():
    assert resolve_tv_status(None, None) == "watching"
    assert resolve_tv_status("nope", "watched") == "watching"


def test_status_falls_back_to_first_when_watching_not_allowed():
    assert resolve_tv_status("nope", None, allowed=("plan_to_watch", "dropped")) == "plan_to_watch"


def test_status_empty_enumeration_is_internal_error():
    with pytest.raises(InternalError):
        resolve_tv_status("watching", None, allowed=())


# ── full merge ───────────────────────────────────────────────────────────────

def test_merge_new_show_defaults():
    state = merge_tv_progress(_req(), None, now=NOW)
    assert state == {
        "title": "X",
        "poster_url": None,
        "total_seasons": None,
        "watched_episodes": {},
        "episodes_in_season": {},
        "last_watched_episode": None,
        "status": "watching",
        "last_interaction_date": NOW,
    }


def test_merge_keeps_existing_fields_when_request_omits_them():
    existing = {
        "title": "Old",
        "poster_url": "http://img/old.jpg",
        "total_seasons": 3,
        "watched_episodes": {"S1E1": True},
        "episodes_in_season": {"1": 10},
        "last_watched_episode": {"season": 1, "episode": 1, "timestamp": "t"},
        "status": "on_hold",
    }
    state = merge_tv_progress(_req(title="New", episodes_in_season={"2": 8}), existing, now=NOW)
    assert state["title"] == "New"
    assert state["poster_url"] == "http://img/old.jpg"
    assert state["total_seasons"] == 3
    assert state["watched_episodes"] == {"S1E1": True}
    assert state["episodes_in_season"] == {"1": 10, "2": 8}
    assert state["last_watched_episode"]["episode"] == 1
    assert state["status"] == "on_hold"


def test_merge_reset_then_toggle():
    existing = {
        "watched_episodes": {"S1E1": True, "S1E2": True},
        "last_watched_episode": {"season": 1, "episode": 2, "timestamp": "t"},
    }
    req = _req(
        watched_episodes={},
        last_watched_episode=None,
        watched_episode={"season": 2, "episode": 1, "watched": True},
    )
    state = merge_tv_progress(req, existing, now=NOW)
    assert state["watched_episodes"] == {"S2E1": True}
    assert state["last_watched_episode"] == {"season": 2, "episode": 1, "timestamp": NOW.isoformat()}


def test_explicit_null_override_differs_from_omitted():
    existing = {"last_watched_episode": {"season": 1, "episode": 1, "timestamp": "t"}}
    assert merge_tv_progress(_req(), existing, now=NOW)["last_watched_episode"] is not None
    assert merge_tv_progress(_req(last_watched_episode=None), existing, now=NOW)["last_watched_episode"] is None


def test_toggle_off_on_empty_map_clears_matching_last():
    episodes, last = apply_episode_toggle({}, {"season": 1, "episode": 1, "timestamp": "t"}, 1, 1, False)
    assert episodes == {}
    assert last is None


def test_non_string_request_status_falls_back():
    assert resolve_tv_status(5, None) == "watching"
    assert resolve_tv_status(["completed"], "on_hold") == "on_hold"
