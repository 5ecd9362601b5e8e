"""Pretty-print helpers for bingo boards."""

from __future__ import annotations

import sys

from ..core.constants import BOARD_SIZE
from ..core.models import Cell, PlayerBoard

CELL_WIDTH = 12


def cell_label(cell: Cell, is_open: bool) -> str:
    if cell.is_free:
        return "*FREE*"
    label = cell.subject[: CELL_WIDTH - 2]
    return f"[{label}]" if is_open else label


def format_board(board: PlayerBoard) -> str:
    by_position = {(cell.position.x, cell.position.y): cell for cell in board.cells}
    header = " ".join(f"{c:^{CELL_WIDTH}}" for c in range(BOARD_SIZE))
    lines = ["    " + header, "    " + "-" * ((CELL_WIDTH + 1) * BOARD_SIZE - 1)]
    for y in range(BOARD_SIZE):
        labels = []
        for x in range(BOARD_SIZE):
            cell = by_position.get((x, y))
            labels.append(cell_label(cell, board.is_open(cell.id)) if cell else "?")
        lines.append(f"{y:>2} | " + " ".join(f"{label:^{CELL_WIDTH}}" for label in labels))
    return "\n".join(lines)


def print_board(board: PlayerBoard, *, stream=None) -> None:
    """Print the board followed by its completed lines."""

    stream = stream or sys.stdout
    print(format_board(board), file=stream)
    if board.completed_lines:
        done = ", ".join(f"{line.type.value} {line.index}" for line in board.completed_lines)
        print(f"\nCompleted lines ({len(board.completed_lines)}): {done}", file=stream)
    else:
        print("\nCompleted lines: none", file=stream)
