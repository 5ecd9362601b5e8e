"""Bingo line detection."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..core.constants import BOARD_SIZE, LineType
from ..core.models import Cell, CompletedLine, LineKey, PlayerBoard
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


def _open_grid(cells: Iterable[Cell], marked: Set[str]) -> List[List[bool]]:
    grid = [[False] * BOARD_SIZE for _ in range(BOARD_SIZE)]
    for cell in cells:
        x, y = cell.position.x, cell.position.y
        if not (0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE):
            continue
        grid[y][x] = cell.is_free or cell.id in marked
    return grid


def _complete_keys(grid: List[List[bool]]) -> List[LineKey]:
    keys: List[LineKey] = []
    for row in range(BOARD_SIZE):
        if all(grid[row]):
            keys.append((LineType.ROW, row))
    for col in range(BOARD_SIZE):
        if all(grid[row][col] for row in range(BOARD_SIZE)):
            keys.append((LineType.COLUMN, col))
    if all(grid[i][i] for i in range(BOARD_SIZE)):
        keys.append((LineType.DIAGONAL, 0))
    if all(grid[i][BOARD_SIZE - 1 - i] for i in range(BOARD_SIZE)):
        keys.append((LineType.DIAGONAL, 1))
    return keys


def compute_completed_lines(board: Iterable[Cell], marked_cell_ids: Iterable[str]) -> Set[LineKey]:
    """Return every ``(type, index)`` line whose cells are all marked or free.

    Diagonal 0 runs top-left to bottom-right, diagonal 1 top-right to
    bottom-left. Ids not on the board are ignored.
    """

    return set(_complete_keys(_open_grid(board, set(marked_cell_ids))))


def detect_completed_lines(
    player_board: PlayerBoard, now: Optional[datetime] = None
) -> List[CompletedLine]:
    """Build ``CompletedLine`` records for the player's current state.

    Positions come from ``player_board.cells`` so shuffled layouts are
    honoured. Rows come first, then columns, then the two diagonals.
    """

    stamp = now or datetime.now(timezone.utc)
    grid = _open_grid(player_board.cells, set(player_board.marked_cell_ids()))
    return [
        CompletedLine(type=line_type, index=index, completed_at=stamp)
        for line_type, index in _complete_keys(grid)
    ]


def merge_completed_lines(
    existing: Sequence[CompletedLine], detected: Iterable[CompletedLine]
) -> Tuple[List[CompletedLine], List[CompletedLine]]:
    """Union ``detected`` into ``existing`` keyed by ``(type, index)``.

    Returns ``(merged, fresh)``. Existing entries are never dropped and keep
    their original timestamp.
    """

    seen = {line.key for line in existing}
    fresh: List[CompletedLine] = []
    for line in detected:
        if line.key in seen:
            continue
        seen.add(line.key)
        fresh.append(line)
    if fresh:
        LOGGER.debug(
            "Merged %d new line(s): %s",
            len(fresh),
            ", ".join(f"{line.type.value}-{line.index}" for line in fresh),
        )
    return list(existing) + fresh, fresh
