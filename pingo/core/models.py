"""Data models supporting the bingo engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .constants import AcceptanceStatus, LineType

LineKey = Tuple[LineType, int]


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class Position:
    """Zero-based board coordinate, ``x`` is the column and ``y`` the row."""

    x: int
    y: int


@dataclass(frozen=True)
class Cell:
    """A single bingo square."""

    id: str
    position: Position
    subject: str
    is_free: bool = False

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "position": {"x": self.position.x, "y": self.position.y},
            "subject": self.subject,
            "isFree": self.is_free,
        }

    @classmethod
    def from_jsonable(cls, data: Dict[str, Any]) -> "Cell":
        position = data["position"]
        return cls(
            id=data["id"],
            position=Position(x=int(position["x"]), y=int(position["y"])),
            subject=data["subject"],
            is_free=bool(data.get("isFree", False)),
        )


@dataclass
class CellState:
    """Per-player open/closed state of a cell."""

    is_open: bool = False
    opened_at: Optional[datetime] = None
    opened_by_submission_id: Optional[str] = None

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "isOpen": self.is_open,
            "openedAt": _to_iso(self.opened_at),
            "openedBySubmissionId": self.opened_by_submission_id,
        }

    @classmethod
    def from_jsonable(cls, data: Dict[str, Any]) -> "CellState":
        return cls(
            is_open=bool(data.get("isOpen", False)),
            opened_at=_from_iso(data.get("openedAt")),
            opened_by_submission_id=data.get("openedBySubmissionId"),
        )


@dataclass
class CompletedLine:
    """A row, column or diagonal that has been fully opened."""

    type: LineType
    index: int
    completed_at: datetime

    @property
    def key(self) -> LineKey:
        return (self.type, self.index)

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "index": self.index,
            "completedAt": _to_iso(self.completed_at),
        }

    @classmethod
    def from_jsonable(cls, data: Dict[str, Any]) -> "CompletedLine":
        return cls(
            type=LineType(data["type"]),
            index=int(data["index"]),
            completed_at=datetime.fromisoformat(data["completedAt"]),
        )


@dataclass
class PlayerBoard:
    """One player's view of the board.

    ``cells`` carries the player's own layout because shuffled boards give
    every participant different positions for the same cell ids.
    """

    user_id: str
    cells: List[Cell]
    cell_states: Dict[str, CellState] = field(default_factory=dict)
    completed_lines: List[CompletedLine] = field(default_factory=list)

    def is_open(self, cell_id: str) -> bool:
        state = self.cell_states.get(cell_id)
        return bool(state and state.is_open)

    def marked_cell_ids(self) -> List[str]:
        return [cell_id for cell_id, state in self.cell_states.items() if state.is_open]

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "cells": [cell.to_jsonable() for cell in self.cells],
            "cellStates": {
                cell_id: state.to_jsonable() for cell_id, state in self.cell_states.items()
            },
            "completedLines": [line.to_jsonable() for line in self.completed_lines],
        }

    @classmethod
    def from_jsonable(cls, data: Dict[str, Any]) -> "PlayerBoard":
        return cls(
            user_id=data["userId"],
            cells=[Cell.from_jsonable(item) for item in data.get("cells", [])],
            cell_states={
                cell_id: CellState.from_jsonable(state)
                for cell_id, state in (data.get("cellStates") or {}).items()
            },
            completed_lines=[
                CompletedLine.from_jsonable(item) for item in data.get("completedLines", [])
            ],
        )


@dataclass
class AnalysisResult:
    """Verdict of the AI judge for one submitted photo."""

    matched_cell_id: Optional[str]
    confidence: float
    critique_ja: str = ""
    critique_en: str = ""
    acceptance_status: AcceptanceStatus = AcceptanceStatus.NO_MATCH

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "matchedCellId": self.matched_cell_id,
            "confidence": self.confidence,
            "critique_ja": self.critique_ja,
            "critique_en": self.critique_en,
            "acceptanceStatus": self.acceptance_status.value,
        }
