import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import main
from pingo.core.constants import LineType
from pingo.core.exceptions import BoardNotFoundError, InvalidDocumentIdError
from pingo.core.models import CellState, CompletedLine
from pingo.engine.board import build_board, create_player_board
from pingo.engine.board_store import BoardStore
from pingo.engine.submission import GameConfig


SUBJECTS = [f"Subject {i}" for i in range(24)]


class BoardStoreTests(unittest.TestCase):
    def test_game_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = BoardStore(tmpdir)
            config = GameConfig(theme="Kitchen", required_bingo_lines=3, seed=4)
            cells = build_board(SUBJECTS)
            game_id = store.create_game(config, cells)

            self.assertRegex(game_id, r"^[A-Z0-9]{6}$")
            loaded_config, loaded_cells = store.load_game(game_id)
            self.assertEqual(loaded_config, config)
            self.assertEqual(loaded_cells, cells)

    def test_player_board_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = BoardStore(tmpdir)
            cells = build_board(SUBJECTS)
            game_id = store.create_game(GameConfig(), cells)
            stamp = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
            player = create_player_board("u1", cells, shuffle=False)
            player.cell_states["cell_0"] = CellState(True, stamp, "sub-1")
            player.completed_lines.append(CompletedLine(LineType.ROW, 0, stamp))

            store.save_player_board(game_id, player)
            loaded = store.load_player_board(game_id, "u1")

            self.assertEqual(loaded, player)
            self.assertEqual(store.list_players(game_id), ["u1"])
            self.assertTrue(store.has_player(game_id, "u1"))

    def test_missing_documents_raise(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = BoardStore(tmpdir)
            with self.assertRaises(BoardNotFoundError):
                store.load_game("NOPE00")
            game_id = store.create_game(GameConfig(), build_board(SUBJECTS))
            with self.assertRaises(BoardNotFoundError):
                store.load_player_board(game_id, "ghost")
            player = create_player_board("u1", build_board(SUBJECTS))
            with self.assertRaises(BoardNotFoundError):
                store.save_player_board("NOPE00", player)

    def test_ids_that_escape_the_store_are_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = BoardStore(Path(tmpdir) / "games")
            game_id = store.create_game(GameConfig(), build_board(SUBJECTS))
            for bad_id in ("../evil", "..", "a/b", "a\\b", "", "x..y"):
                with self.subTest(bad_id=bad_id):
                    with self.assertRaises(InvalidDocumentIdError):
                        store.load_game(bad_id)
                    with self.assertRaises(InvalidDocumentIdError):
                        store.load_player_board(game_id, bad_id)
                    with self.assertRaises(InvalidDocumentIdError):
                        store.has_player(game_id, bad_id)
                    with self.assertRaises(InvalidDocumentIdError):
                        store.list_players(bad_id)
                    player = create_player_board(bad_id, build_board(SUBJECTS))
                    with self.assertRaises(InvalidDocumentIdError):
                        store.save_player_board(game_id, player)
            self.assertEqual(store.list_players(game_id), [])
            self.assertEqual(sorted(p.name for p in Path(tmpdir).iterdir()), ["games"])


class CliTests(unittest.TestCase):
    def run_cli(self, *argv: str) -> str:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            main.main(list(argv))
        return buffer.getvalue()

    def test_new_join_mark_flow(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            subjects_file = Path(tmpdir) / "subjects.txt"
            subjects_file.write_text(
                "# kitchen things\n" + "\n".join(SUBJECTS) + "\n\n", encoding="utf-8"
            )
            store_dir = str(Path(tmpdir) / "games")

            game_id = self.run_cli(
                "--store-dir", store_dir, "new",
                "--subjects-file", str(subjects_file),
                "--no-shuffle",
            ).strip()
            self.run_cli("--store-dir", store_dir, "join", game_id, "u1")
            for i in range(4):
                self.run_cli("--store-dir", store_dir, "mark", game_id, "u1", f"Subject {i}")
            output = self.run_cli("--store-dir", store_dir, "mark", game_id, "u1", "cell_4")

            self.assertIn('"celebration": "game_complete"', output)
            self.assertIn('"finished": true', output)
            board = BoardStore(store_dir).load_player_board(game_id, "u1")
            self.assertEqual([line.key for line in board.completed_lines], [(LineType.ROW, 0)])

    def test_unknown_game_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(SystemExit) as ctx:
                self.run_cli("--store-dir", tmpdir, "show", "NOPE00", "u1")
            self.assertEqual(ctx.exception.code, 1)

    def run_cli_error(self, *argv: str) -> tuple:
        errors = io.StringIO()
        with redirect_stderr(errors), redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main.main(list(argv))
        return ctx.exception.code, errors.getvalue()

    def create_joined_game(self, store_dir: str) -> str:
        game_id = self.run_cli(
            "--store-dir", store_dir, "new", "--subjects", *SUBJECTS, "--theme", "Kitchen"
        ).strip()
        self.run_cli("--store-dir", store_dir, "join", game_id, "u1")
        return game_id

    def test_analyze_without_api_key_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            game_id = self.create_joined_game(tmpdir)
            image = Path(tmpdir) / "photo.jpg"
            image.write_bytes(b"\xff\xd8\xff")

            with patch.dict(os.environ, {}, clear=True):
                code, errors = self.run_cli_error(
                    "--store-dir", tmpdir, "analyze", game_id, "u1", str(image)
                )

            self.assertEqual(code, 1)
            self.assertIn("GEMINI_API_KEY", errors)

    def test_analyze_missing_image_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            game_id = self.create_joined_game(tmpdir)
            code, errors = self.run_cli_error(
                "--store-dir", tmpdir, "analyze", game_id, "u1", str(Path(tmpdir) / "missing.jpg")
            )
            self.assertEqual(code, 1)
            self.assertIn("error:", errors)

    def test_join_with_path_like_user_id_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            game_id = self.create_joined_game(tmpdir)
            code, errors = self.run_cli_error("--store-dir", tmpdir, "join", game_id, "../evil")
            self.assertEqual(code, 1)
            self.assertIn("Invalid user id", errors)
            self.assertFalse((Path(tmpdir) / game_id / "evil.json").exists())

    def test_new_generates_subjects_from_theme(self) -> None:
        generated = [f"Shell {i}" for i in range(25)]
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("main.GeminiSubjectGenerator") as generator_cls:
                generator = MagicMock()
                generator.generate.return_value = generated
                generator_cls.return_value = generator
                game_id = self.run_cli(
                    "--store-dir", tmpdir, "new", "--theme", "Beach", "--language", "ja"
                ).strip()

            generator.generate.assert_called_once_with("", "Beach", 25, "ja")
            config, cells = BoardStore(tmpdir).load_game(game_id)
            self.assertEqual(config.theme, "Beach")
            subjects = [cell.subject for cell in cells if not cell.is_free]
            self.assertEqual(subjects, generated[:24])

    def test_new_without_subjects_or_theme_is_a_usage_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("main.GeminiSubjectGenerator") as generator_cls:
                code, errors = self.run_cli_error("--store-dir", tmpdir, "new")
            self.assertEqual(code, 2)
            self.assertIn("--theme", errors)
            generator_cls.assert_not_called()

    def test_rejected_theme_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            client = MagicMock()
            client.generate_json.return_value = '{"error": "Not suitable for children."}'
            with patch("pingo.io.subjects.GeminiClient", return_value=client):
                code, errors = self.run_cli_error("--store-dir", tmpdir, "new", "--theme", "Bad")
            self.assertEqual(code, 1)
            self.assertIn("Not suitable for children.", errors)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
