"""Fixed point rewards and named badges."""

from __future__ import annotations

from dataclasses import dataclass

TASK_COMPLETED_POINTS = 25
TOPIC_COMPLETED_POINTS = 50
POMODORO_COMPLETED_POINTS = 10


@dataclass(frozen=True)
class Badge:
    name: str
    description: str
    icon: str


WEEK_WARRIOR = Badge(name="Week Warrior", description="7-day study streak", icon="\U0001f525")
WEEK_WARRIOR_STREAK = 7
