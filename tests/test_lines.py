import random
import unittest
from datetime import datetime, timedelta, timezone

from pingo.core.constants import BOARD_SIZE, Celebration, LineType
from pingo.core.models import CellState, CompletedLine
from pingo.engine.board import build_board, create_player_board, get_cell_at_position
from pingo.engine.celebration import decide_celebration
from pingo.engine.lines import (
    compute_completed_lines,
    detect_completed_lines,
    merge_completed_lines,
)


def ids_at(cells, positions):
    return [get_cell_at_position(cells, x, y).id for x, y in positions]


class ComputeCompletedLinesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.board = build_board([f"Subject {i}" for i in range(24)])

    def test_fresh_board_has_no_lines(self) -> None:
        self.assertEqual(compute_completed_lines(self.board, []), set())

    def test_scattered_marks_complete_nothing(self) -> None:
        marked = ids_at(self.board, [(0, 0), (1, 1), (3, 3)])
        self.assertEqual(compute_completed_lines(self.board, marked), set())

    def test_each_row(self) -> None:
        for row in range(BOARD_SIZE):
            marked = ids_at(self.board, [(x, row) for x in range(BOARD_SIZE)])
            self.assertEqual(compute_completed_lines(self.board, marked), {(LineType.ROW, row)})

    def test_each_column(self) -> None:
        for col in range(BOARD_SIZE):
            marked = ids_at(self.board, [(col, y) for y in range(BOARD_SIZE)])
            self.assertEqual(
                compute_completed_lines(self.board, marked), {(LineType.COLUMN, col)}
            )

    def test_center_column_uses_free_cell(self) -> None:
        marked = ids_at(self.board, [(2, 0), (2, 1), (2, 3), (2, 4)])
        self.assertEqual(compute_completed_lines(self.board, marked), {(LineType.COLUMN, 2)})

    def test_main_diagonal_with_free_center(self) -> None:
        marked = ids_at(self.board, [(0, 0), (1, 1), (3, 3), (4, 4)])
        self.assertEqual(compute_completed_lines(self.board, marked), {(LineType.DIAGONAL, 0)})

    def test_anti_diagonal(self) -> None:
        marked = ids_at(self.board, [(4, 0), (3, 1), (1, 3), (0, 4)])
        self.assertEqual(compute_completed_lines(self.board, marked), {(LineType.DIAGONAL, 1)})

    def test_full_board_completes_all_twelve_lines(self) -> None:
        lines = compute_completed_lines(self.board, [cell.id for cell in self.board])
        self.assertEqual(len(lines), 12)

    def test_unknown_ids_are_ignored(self) -> None:
        self.assertEqual(compute_completed_lines(self.board, ["cell_99", "nope"]), set())

    def test_marking_is_monotonic(self) -> None:
        rng = random.Random(7)
        order = [cell.id for cell in self.board if not cell.is_free]
        rng.shuffle(order)
        previous = set()
        for index in range(len(order)):
            current = compute_completed_lines(self.board, order[: index + 1])
            self.assertTrue(previous.issubset(current))
            previous = current


class DetectCompletedLinesTests(unittest.TestCase):
    def test_uses_player_positions_on_shuffled_board(self) -> None:
        master = build_board([f"Subject {i}" for i in range(24)])
        player = create_player_board("u1", master, rng=random.Random(3))
        for cell_id in ids_at(player.cells, [(x, 4) for x in range(BOARD_SIZE)]):
            player.cell_states[cell_id] = CellState(is_open=True)

        stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
        lines = detect_completed_lines(player, now=stamp)
        self.assertEqual([line.key for line in lines], [(LineType.ROW, 4)])
        self.assertEqual(lines[0].completed_at, stamp)

    def test_order_is_rows_columns_diagonals(self) -> None:
        master = build_board([f"Subject {i}" for i in range(24)])
        player = create_player_board("u1", master, shuffle=False)
        for cell in master:
            if not cell.is_free:
                player.cell_states[cell.id] = CellState(is_open=True)
        keys = [line.key for line in detect_completed_lines(player)]
        expected = (
            [(LineType.ROW, i) for i in range(5)]
            + [(LineType.COLUMN, i) for i in range(5)]
            + [(LineType.DIAGONAL, 0), (LineType.DIAGONAL, 1)]
        )
        self.assertEqual(keys, expected)


class MergeCompletedLinesTests(unittest.TestCase):
    def test_existing_lines_keep_timestamp_and_fresh_are_reported(self) -> None:
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        later = earlier + timedelta(hours=1)
        existing = [CompletedLine(LineType.ROW, 0, earlier)]
        detected = [
            CompletedLine(LineType.ROW, 0, later),
            CompletedLine(LineType.COLUMN, 3, later),
        ]
        merged, fresh = merge_completed_lines(existing, detected)
        self.assertEqual([line.key for line in merged], [(LineType.ROW, 0), (LineType.COLUMN, 3)])
        self.assertEqual(merged[0].completed_at, earlier)
        self.assertEqual([line.key for line in fresh], [(LineType.COLUMN, 3)])

    def test_lines_missing_from_detection_are_kept(self) -> None:
        stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
        existing = [CompletedLine(LineType.DIAGONAL, 1, stamp)]
        merged, fresh = merge_completed_lines(existing, [])
        self.assertEqual(merged, existing)
        self.assertEqual(fresh, [])


class CelebrationTests(unittest.TestCase):
    def test_first_observation_is_silent(self) -> None:
        self.assertEqual(decide_celebration(None, 3, 1), Celebration.NONE)

    def test_no_increase_is_silent(self) -> None:
        self.assertEqual(decide_celebration(2, 2, 3), Celebration.NONE)
        self.assertEqual(decide_celebration(2, 1, 3), Celebration.NONE)

    def test_new_line_below_target(self) -> None:
        self.assertEqual(decide_celebration(0, 1, 3), Celebration.LINE)

    def test_reaching_target_completes_game(self) -> None:
        self.assertEqual(decide_celebration(2, 3, 3), Celebration.GAME_COMPLETE)
        self.assertEqual(decide_celebration(0, 2, 1), Celebration.GAME_COMPLETE)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
