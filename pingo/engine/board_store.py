"""Persistent game and player board document store.

Games live under ``local_db/collections/games/<game_id>/`` as ``game.json``
(rules plus master layout) and one ``players/<user_id>.json`` per
participant.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence, Tuple

from ..core.exceptions import BoardNotFoundError, InvalidDocumentIdError
from ..core.models import Cell, PlayerBoard
from ..utils.logger import get_logger
from .board import validate_board
from .submission import GameConfig


LOGGER = get_logger(__name__)

DEFAULT_STORE_DIR = Path("local_db/collections/games")
GAME_ID_LENGTH = 6


class BoardStore:
    """Save and load games and player boards as JSON documents."""

    def __init__(self, store_dir: Path | str = DEFAULT_STORE_DIR) -> None:
        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def create_game(self, config: GameConfig, cells: Sequence[Cell]) -> str:
        """Persist a new game and return its ID."""
        validate_board(cells)
        game_id = self._new_id()
        while self._game_dir(game_id).exists():
            game_id = self._new_id()

        doc = {
            "id": game_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "config": config.to_jsonable(),
            "cells": [cell.to_jsonable() for cell in cells],
        }
        game_dir = self._game_dir(game_id)
        (game_dir / "players").mkdir(parents=True)
        self._write(game_dir / "game.json", doc)
        LOGGER.info("Game created: %s", game_id)
        return game_id

    def load_game(self, game_id: str) -> Tuple[GameConfig, List[Cell]]:
        doc = self._read(self._game_dir(game_id) / "game.json", f"Game {game_id} not found")
        config = GameConfig(**doc.get("config", {}))
        cells = [Cell.from_jsonable(item) for item in doc.get("cells", [])]
        return config, cells

    def save_player_board(self, game_id: str, board: PlayerBoard) -> Path:
        game_dir = self._game_dir(game_id)
        if not (game_dir / "game.json").exists():
            raise BoardNotFoundError(f"Game {game_id} not found")
        path = self._player_path(game_id, board.user_id)
        self._write(path, board.to_jsonable())
        LOGGER.debug("Player board saved: %s/%s", game_id, board.user_id)
        return path

    def load_player_board(self, game_id: str, user_id: str) -> PlayerBoard:
        path = self._player_path(game_id, user_id)
        doc = self._read(path, f"Player {user_id} has not joined game {game_id}")
        return PlayerBoard.from_jsonable(doc)

    def has_player(self, game_id: str, user_id: str) -> bool:
        return self._player_path(game_id, user_id).exists()

    def list_players(self, game_id: str) -> List[str]:
        players_dir = self._game_dir(game_id) / "players"
        if not players_dir.exists():
            raise BoardNotFoundError(f"Game {game_id} not found")
        return sorted(path.stem for path in players_dir.glob("*.json"))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _game_dir(self, game_id: str) -> Path:
        return self.store_dir / self._check_id(game_id, "game")

    def _player_path(self, game_id: str, user_id: str) -> Path:
        return self._game_dir(game_id) / "players" / f"{self._check_id(user_id, 'user')}.json"

    @staticmethod
    def _check_id(value: str, kind: str) -> str:
        if not value or value == "." or ".." in value or any(sep in value for sep in ("/", "\\", "\0")):
            raise InvalidDocumentIdError(f"Invalid {kind} id: {value!r}")
        return value

    @staticmethod
    def _write(path: Path, doc: dict) -> None:
        path.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")

    @staticmethod
    def _read(path: Path, missing_message: str) -> dict:
        if not path.exists():
            raise BoardNotFoundError(missing_message)
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex[:GAME_ID_LENGTH].upper()
