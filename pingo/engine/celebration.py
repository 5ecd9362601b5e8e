"""Decide which celebration a change in completed lines earns."""

from __future__ import annotations

from typing import Optional

from ..core.constants import Celebration


def decide_celebration(
    previous_count: Optional[int], current_count: int, required_lines: int
) -> Celebration:
    """Pick the effect for a transition from ``previous_count`` lines.

    ``previous_count`` is ``None`` on the first observation, which never
    celebrates. A decrease or no change does nothing either.
    """

    if previous_count is None or current_count <= previous_count:
        return Celebration.NONE
    if required_lines <= current_count:
        return Celebration.GAME_COMPLETE
    return Celebration.LINE
