"""CLI entrypoint for the Pingo photo bingo engine."""

from __future__ import annotations

import argparse
import json
import logging
import random
import uuid
from pathlib import Path
from typing import Any, Dict, List

from pingo.core.constants import AcceptanceStatus
from pingo.core.exceptions import PingoError
from pingo.core.models import AnalysisResult
from pingo.engine.board import build_board, create_player_board
from pingo.engine.board_store import DEFAULT_STORE_DIR, BoardStore
from pingo.engine.submission import GameConfig, SubmissionOutcome, SubmissionProcessor
from pingo.io.analyzer import GeminiImageAnalyzer
from pingo.io.subjects import GeminiSubjectGenerator, subjects_for_board
from pingo.utils.logger import configure_logging
from pingo.utils.pretty import print_board


def parse_subjects_file(path: Path) -> List[str]:
    """Read subjects from a file, one per line. Blank lines and # comments are skipped."""
    entries: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entries.append(line)
    return entries


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Play Pingo, a photo bingo judged by Gemini",
    )
    parser.add_argument(
        "--store-dir",
        type=Path,
        default=DEFAULT_STORE_DIR,
        help="Directory holding game documents",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    new = commands.add_parser("new", help="Create a game from 24 subjects or a generated theme")
    new.add_argument("--subjects", nargs="+", metavar="SUBJECT", help="Board subjects")
    new.add_argument(
        "--subjects-file",
        type=Path,
        metavar="FILE",
        help="File with one subject per line (# comments and blank lines ignored)",
    )
    new.add_argument("--theme", type=str, default="", help="Game theme passed to the judge")
    new.add_argument(
        "--title",
        type=str,
        default="",
        help="Game title used when generating subjects (defaults to the theme)",
    )
    new.add_argument(
        "--language",
        type=str,
        default="en",
        help="Language for generated subjects",
    )
    new.add_argument(
        "--required-lines",
        type=int,
        default=1,
        help="Lines needed to finish the game (1-5)",
    )
    new.add_argument(
        "--confidence-threshold",
        type=float,
        default=0.5,
        help="Minimum judge confidence for a photo to open a cell (0-1)",
    )
    new.add_argument(
        "--no-shuffle",
        action="store_true",
        help="Give every player the master layout instead of a shuffled one",
    )
    new.add_argument("--seed", type=int, default=None, help="Random seed for shuffling")

    join = commands.add_parser("join", help="Create a player board for a game")
    join.add_argument("game_id")
    join.add_argument("user_id")

    show = commands.add_parser("show", help="Print a player's board")
    show.add_argument("game_id")
    show.add_argument("user_id")

    mark = commands.add_parser("mark", help="Open a cell by id or subject without a photo")
    mark.add_argument("game_id")
    mark.add_argument("user_id")
    mark.add_argument("cell", help="Cell id or exact subject")

    analyze = commands.add_parser("analyze", help="Judge a photo and apply the result")
    analyze.add_argument("game_id")
    analyze.add_argument("user_id")
    analyze.add_argument("image", type=Path, help="Photo to submit")
    analyze.add_argument("--mime-type", type=str, default="image/jpeg", help="Image MIME type")
    return parser


def outcome_payload(outcome: SubmissionOutcome, analysis: AnalysisResult) -> Dict[str, Any]:
    return {
        "analysis": analysis.to_jsonable(),
        "resolved_cell_id": outcome.resolved_cell_id,
        "accepted": outcome.accepted,
        "opened": outcome.opened,
        "reason": outcome.reason,
        "new_lines": [line.to_jsonable() for line in outcome.new_lines],
        "total_lines": outcome.total_lines,
        "celebration": outcome.celebration.value,
    }


def _submit(store: BoardStore, game_id: str, user_id: str, analysis: AnalysisResult) -> Dict[str, Any]:
    config, _ = store.load_game(game_id)
    board = store.load_player_board(game_id, user_id)
    processor = SubmissionProcessor(config)
    outcome = processor.apply(board, analysis, submission_id=uuid.uuid4().hex)
    if outcome.opened:
        store.save_player_board(game_id, board)
    payload = outcome_payload(outcome, analysis)
    payload["finished"] = processor.has_won(board)
    return payload


def run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    store = BoardStore(args.store_dir)

    if args.command == "new":
        subjects: List[str] = []
        if args.subjects:
            subjects.extend(args.subjects)
        if args.subjects_file:
            subjects.extend(parse_subjects_file(args.subjects_file))
        if not subjects:
            if not args.theme:
                parser.error("provide --subjects, --subjects-file or --theme")
            subjects = subjects_for_board(
                GeminiSubjectGenerator(), args.title, args.theme, language=args.language
            )
        try:
            config = GameConfig(
                theme=args.theme,
                required_bingo_lines=args.required_lines,
                confidence_threshold=args.confidence_threshold,
                shuffle=not args.no_shuffle,
                seed=args.seed,
            )
        except ValueError as exc:
            parser.error(str(exc))
        game_id = store.create_game(config, build_board(subjects))
        print(game_id)

    elif args.command == "join":
        config, cells = store.load_game(args.game_id)
        if store.has_player(args.game_id, args.user_id):
            parser.exit(1, f"{args.user_id} already joined {args.game_id}\n")
        rng = random.Random(f"{config.seed}:{args.user_id}") if config.seed is not None else None
        board = create_player_board(args.user_id, cells, shuffle=config.shuffle, rng=rng)
        store.save_player_board(args.game_id, board)
        print_board(board)

    elif args.command == "show":
        print_board(store.load_player_board(args.game_id, args.user_id))

    elif args.command == "mark":
        analysis = AnalysisResult(
            matched_cell_id=args.cell,
            confidence=1.0,
            critique_en="Marked manually.",
            acceptance_status=AcceptanceStatus.ACCEPTED,
        )
        print(json.dumps(_submit(store, args.game_id, args.user_id, analysis), ensure_ascii=False, indent=2))

    elif args.command == "analyze":
        config, _ = store.load_game(args.game_id)
        board = store.load_player_board(args.game_id, args.user_id)
        analysis = GeminiImageAnalyzer().analyze(
            args.image.read_bytes(), board, config.theme, mime_type=args.mime_type
        )
        print(json.dumps(_submit(store, args.game_id, args.user_id, analysis), ensure_ascii=False, indent=2))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    try:
        run(args, parser)
    except (PingoError, RuntimeError, OSError) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":  # pragma: no cover
    main()
