# app/services/progress_merge.py
"""
Pure merge helpers for TV watched-progress.

Nothing in here touches the database; `app.services.watched_progress` reads
the existing row, feeds it through these functions and persists the result.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from app.core.errors import InternalError
from app.core.media import PREFERRED_TV_STATUS, TV_STATUSES

log = logging.getLogger(__name__)

_MISSING = object()


def _is_absent(value: Any) -> bool:
    return value is None or value is _MISSING or value == ""


def coalesce(requested: Any, existing: Any, default: Any = None) -> Any:
    """
    Three-tier fallback: request value -> existing row value -> default.
    None and "" count as absent.
    """
    if not _is_absent(requested):
        return requested
    if not _is_absent(existing):
        return existing
    return default


def parse_int(value: Any) -> Optional[int]:
    """
    Lenient integer parse: 3, "3", " 3 ", 3.0 -> 3. Anything else -> None.
    Booleans are rejected (True is not a season count).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def resolve_total_seasons(requested: Any, existing: Optional[int]) -> Optional[int]:
    return coalesce(parse_int(requested), existing)


def episode_key(season: int, episode: int) -> str:
    return f"S{season}E{episode}"


def resolve_episode_state(
    existing_episodes: Optional[Mapping[str, Any]],
    existing_last: Optional[Mapping[str, Any]],
    *,
    episodes_override: Any = _MISSING,
    last_override: Any = _MISSING,
) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """
    Base episode map + last-watched before any toggle is applied.
    An override replaces the stored value wholesale (`{}` / None reset).
    Always returns fresh copies so the caller can mutate them.
    """
    if episodes_override is not _MISSING:
        episodes = dict(episodes_override or {})
    else:
        episodes = dict(existing_episodes or {})

    if last_override is not _MISSING:
        last = dict(last_override) if last_override else None
    else:
        last = dict(existing_last) if existing_last else None

    return episodes, last


def _same_episode(last: Optional[Mapping[str, Any]], season: int, episode: int) -> bool:
    if not last:
        return False
    return parse_int(last.get("season")) == season and parse_int(last.get("episode")) == episode


def apply_episode_toggle(
    episodes: Dict[str, Any],
    last: Optional[Dict[str, Any]],
    season: int,
    episode: int,
    watched: bool,
    *,
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """
    Toggle one episode on `episodes` (mutated in place and returned).

    Un-toggling the current last-watched episode clears it to None; we do not
    go looking for the previous one.
    """
    key = episode_key(season, episode)
    if watched:
        episodes[key] = True
        stamp = (now or datetime.now(timezone.utc)).isoformat()
        last = {"season": season, "episode": episode, "timestamp": stamp}
    else:
        episodes.pop(key, None)
        if _same_episode(last, season, episode):
            last = None
    return episodes, last


def merge_episode_counts(
    existing: Optional[Mapping[str, Any]],
    incoming: Optional[Mapping[Any, Any]],
) -> Dict[str, int]:
    """
    Additive merge of {season: episode_count}. Seasons not in `incoming`
    are kept; non-numeric or negative counts are skipped with a warning.
    """
    merged: Dict[str, Any] = dict(existing or {})
    for season, raw in (incoming or {}).items():
        count = parse_int(raw)
        if count is None or count < 0:
            log.warning("Invalid episode count for season %s: %r (skipped)", season, raw)
            continue
        merged[str(season)] = count
    return merged


def resolve_tv_status(
    requested: Any,
    existing: Optional[str],
    allowed: Sequence[str] = TV_STATUSES,
) -> str:
    """
    Valid request status -> valid stored status -> "watching"
    (or the first allowed value when "watching" isn't in the set).
    """
    if not allowed:
        log.error("No valid TV statuses configured; cannot resolve status")
        raise InternalError("Server configuration error for TV statuses.")

    if requested in allowed:
        return requested  # type: ignore[return-value]
    if existing in allowed:
        return existing  # type: ignore[return-value]

    fallback = PREFERRED_TV_STATUS if PREFERRED_TV_STATUS in allowed else allowed[0]
    log.warning(
        "TV status from request/DB (%r / %r) is invalid or missing. Defaulting to %r.",
        requested, existing, fallback,
    )
    return fallback


def _existing(row: Any, key: str) -> Any:
    if row is None:
        return None
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def merge_tv_progress(request: Any, existing: Any, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Compute the full TV row (minus keys) from a WatchedProgressIn and the
    stored row (ORM object, mapping or None). Order matters:
    overrides (reset) first, then the single-episode toggle, then season counts.
    """
    now = now or datetime.now(timezone.utc)

    episodes, last = resolve_episode_state(
        _existing(existing, "watched_episodes"),
        _existing(existing, "last_watched_episode"),
        episodes_override=request.watched_episodes if request.overrides_watched_episodes else _MISSING,
        last_override=request.last_watched_episode if request.overrides_last_watched_episode else _MISSING,
    )

    toggle = request.watched_episode
    if toggle is not None:
        episodes, last = apply_episode_toggle(
            episodes, last, toggle.season, toggle.episode, bool(toggle.watched), now=now
        )

    return {
        "title": coalesce(request.title, _existing(existing, "title")),
        "poster_url": coalesce(request.poster_url, _existing(existing, "poster_url")),
        "total_seasons": resolve_total_seasons(request.total_seasons, _existing(existing, "total_seasons")),
        "watched_episodes": episodes,
        "episodes_in_season": merge_episode_counts(
            _existing(existing, "episodes_in_season"), request.episodes_in_season
        ),
        "last_watched_episode": last,
        "status": resolve_tv_status(request.status, _existing(existing, "status")),
        "last_interaction_date": now,
    }


__all__ = [
    "merge_tv_progress",
    "coalesce",
    "parse_int",
    "resolve_total_seasons",
    "episode_key",
    "resolve_episode_state",
    "apply_episode_toggle",
    "merge_episode_counts",
    "resolve_tv_status",
]
