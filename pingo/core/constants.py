"""Shared constants and enumerations for the bingo engine."""

from __future__ import annotations

from enum import Enum


BOARD_SIZE = 5
BOARD_CENTER_COORD = BOARD_SIZE // 2
CENTER_CELL_INDEX = BOARD_CENTER_COORD * BOARD_SIZE + BOARD_CENTER_COORD
CELL_COUNT = BOARD_SIZE * BOARD_SIZE
SUBJECT_COUNT = CELL_COUNT - 1

CELL_ID_PREFIX = "cell"
FREE_SUBJECT = "FREE"

DEFAULT_CONFIDENCE_THRESHOLD = 0.5
DEFAULT_REQUIRED_BINGO_LINES = 1
MAX_REQUIRED_BINGO_LINES = 5


class LineType(str, Enum):
    """Kinds of bingo lines."""

    ROW = "row"
    COLUMN = "column"
    DIAGONAL = "diagonal"


class AcceptanceStatus(str, Enum):
    """Verdict returned by the image analysis."""

    ACCEPTED = "accepted"
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    NO_MATCH = "no_match"


class ProcessingStatus(str, Enum):
    """Lifecycle of an uploaded submission."""

    UPLOADED = "uploaded"
    CONTENT_CHECKING = "content_checking"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    ERROR = "error"


class Celebration(str, Enum):
    """Effect to trigger after the completed line count changes."""

    NONE = "none"
    LINE = "line"
    GAME_COMPLETE = "game_complete"


def cell_id_for_index(index: int) -> str:
    return f"{CELL_ID_PREFIX}_{index}"
