"""Points, levels, streaks, and badges on a user's gamification record.

These functions only mutate the record they are given. Loading, locking,
and persisting the record is the caller's job (see ``gamification.service``).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from studyplanner.clock import utcnow
from studyplanner.db.models import UserBadge, UserGamification
from studyplanner.gamification.levels import compute_level
from studyplanner.gamification.rewards import Badge


@dataclass(frozen=True)
class PointsResult:
    """Outcome of a point grant. ``new_level`` is set only on level-up."""

    level_up: bool
    new_level: int | None = None


def add_points(gam: UserGamification, amount: int) -> PointsResult:
    """Add points and recompute the level."""
    old_level = gam.level or 1
    gam.total_points = (gam.total_points or 0) + amount
    gam.level = compute_level(gam.total_points)
    if gam.level > old_level:
        return PointsResult(level_up=True, new_level=gam.level)
    return PointsResult(level_up=False)


def update_streak(gam: UserGamification, today: date) -> bool:
    """Apply one study event on ``today`` to the daily streak.

    Consecutive days extend the streak, a gap of more than one day restarts
    it at 1, and repeat events on the same day change nothing.
    Returns True if the record changed.
    """
    last = gam.last_study_date
    if isinstance(last, datetime):
        last = last.date()

    if last is None:
        gam.current_streak = 1
    else:
        gap = (today - last).days
        if gap <= 0:
            return False
        if gap == 1:
            gam.current_streak = (gam.current_streak or 0) + 1
        else:
            gam.current_streak = 1

    gam.longest_streak = max(gam.longest_streak or 0, gam.current_streak)
    gam.last_study_date = today
    return True


def has_badge(gam: UserGamification, name: str) -> bool:
    return any(badge.name == name for badge in gam.badges)


def add_badge(gam: UserGamification, badge: Badge, now: datetime | None = None) -> bool:
    """Award ``badge`` unless a badge with the same name was already earned.

    Returns True only when the badge was inserted.
    """
    if has_badge(gam, badge.name):
        return False
    gam.badges.append(
        UserBadge(
            user_id=gam.user_id,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            earned_at=now or utcnow(),
        )
    )
    return True


def streak_active(gam: UserGamification, today: date) -> int:
    """Current streak as seen on ``today``; 0 if the last study day is older than yesterday."""
    last = gam.last_study_date
    if last is None or (today - last) > timedelta(days=1):
        return 0
    return gam.current_streak or 0
