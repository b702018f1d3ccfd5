"""Level computation.

Levels advance every ``POINTS_PER_LEVEL`` points; level 1 starts at 0.
"""

from __future__ import annotations

POINTS_PER_LEVEL = 1000


def compute_level(total_points: int) -> int:
    """Level for a point total: floor(points / 1000) + 1."""
    return max(0, total_points) // POINTS_PER_LEVEL + 1


def points_to_next_level(total_points: int) -> int:
    """Points still needed to reach the next level."""
    return compute_level(total_points) * POINTS_PER_LEVEL - total_points
