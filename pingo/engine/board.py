"""Board construction, shuffling and structural checks."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..core.constants import (
    BOARD_CENTER_COORD,
    BOARD_SIZE,
    CELL_COUNT,
    CENTER_CELL_INDEX,
    FREE_SUBJECT,
    SUBJECT_COUNT,
    cell_id_for_index,
)
from ..core.exceptions import BoardStructureError
from ..core.models import Cell, CellState, PlayerBoard, Position
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)


class Board:
    """Read-only 5x5 board addressable by cell id or by ``(x, y)``."""

    def __init__(self, cells: Sequence[Cell]) -> None:
        self.cells: List[Cell] = list(cells)
        self._by_id: Dict[str, Cell] = {cell.id: cell for cell in self.cells}
        self._by_position: Dict[Tuple[int, int], Cell] = {
            (cell.position.x, cell.position.y): cell for cell in self.cells
        }

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def by_id(self, cell_id: str) -> Optional[Cell]:
        return self._by_id.get(cell_id)

    def at(self, x: int, y: int) -> Optional[Cell]:
        return self._by_position.get((x, y))

    @property
    def free_cell(self) -> Optional[Cell]:
        return next((cell for cell in self.cells if cell.is_free), None)


def build_board(subjects: Sequence[str]) -> List[Cell]:
    """Lay out 24 subjects row-major around the free centre cell."""

    if len(subjects) != SUBJECT_COUNT:
        raise BoardStructureError(
            f"Board needs exactly {SUBJECT_COUNT} subjects, got {len(subjects)}"
        )

    remaining = iter(subjects)
    cells: List[Cell] = []
    for index in range(CELL_COUNT):
        position = Position(x=index % BOARD_SIZE, y=index // BOARD_SIZE)
        is_free = index == CENTER_CELL_INDEX
        cells.append(
            Cell(
                id=cell_id_for_index(index),
                position=position,
                subject=FREE_SUBJECT if is_free else next(remaining),
                is_free=is_free,
            )
        )
    return cells


def shuffle_board_cells(cells: Sequence[Cell], rng: Optional[random.Random] = None) -> List[Cell]:
    """Fisher-Yates shuffle of positions, pinning the free cell to the centre.

    Ids keep their subjects so every player's board shares one id space.
    """

    if len(cells) != CELL_COUNT:
        raise BoardStructureError(f"Board must have exactly {CELL_COUNT} cells")

    free_index = next((i for i, cell in enumerate(cells) if cell.is_free), None)
    if free_index is None:
        raise BoardStructureError("FREE cell not found")

    rng = rng or random.Random()
    positions = [cell.position for i, cell in enumerate(cells) if i != free_index]
    for i in range(len(positions) - 1, 0, -1):
        j = rng.randint(0, i)
        positions[i], positions[j] = positions[j], positions[i]

    center = Position(x=BOARD_CENTER_COORD, y=BOARD_CENTER_COORD)
    shuffled: List[Cell] = []
    pending = iter(positions)
    for i, cell in enumerate(cells):
        shuffled.append(replace(cell, position=center if i == free_index else next(pending)))
    return shuffled


def create_player_board(
    user_id: str,
    cells: Sequence[Cell],
    *,
    shuffle: bool = True,
    rng: Optional[random.Random] = None,
) -> PlayerBoard:
    """Start a player's board from the master layout with every cell closed."""

    validate_board(cells)
    layout = shuffle_board_cells(cells, rng) if shuffle else list(cells)
    states = {cell.id: CellState() for cell in layout if not cell.is_free}
    return PlayerBoard(user_id=user_id, cells=layout, cell_states=states)


def get_cell_at_position(cells: Sequence[Cell], x: int, y: int) -> Optional[Cell]:
    for cell in cells:
        if cell.position.x == x and cell.position.y == y:
            return cell
    return None


def _structure_problem(cells: Sequence[Cell]) -> Optional[str]:
    if len(cells) != CELL_COUNT:
        return f"expected {CELL_COUNT} cells, got {len(cells)}"

    by_position: Dict[Tuple[int, int], Cell] = {}
    for cell in cells:
        key = (cell.position.x, cell.position.y)
        if key in by_position:
            return f"duplicate position {key}"
        by_position[key] = cell

    for x in range(BOARD_SIZE):
        for y in range(BOARD_SIZE):
            if (x, y) not in by_position:
                return f"missing position {(x, y)}"

    center = by_position[(BOARD_CENTER_COORD, BOARD_CENTER_COORD)]
    if not center.is_free:
        return "centre cell is not free"
    return None


def is_valid_board_structure(cells: Sequence[Cell]) -> bool:
    return _structure_problem(cells) is None


def validate_board(cells: Sequence[Cell]) -> None:
    """Raise :class:`BoardStructureError` if the layout is not a full 5x5 board."""

    problem = _structure_problem(cells)
    if problem:
        LOGGER.error("Invalid board: %s", problem)
        raise BoardStructureError(problem)
