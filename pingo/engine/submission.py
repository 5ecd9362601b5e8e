"""Apply judged photo submissions to a player's board."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..core.constants import (
    AcceptanceStatus,
    Celebration,
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_REQUIRED_BINGO_LINES,
    MAX_REQUIRED_BINGO_LINES,
)
from ..core.models import AnalysisResult, CellState, CompletedLine, PlayerBoard
from ..utils.logger import get_logger
from .celebration import decide_celebration
from .lines import detect_completed_lines, merge_completed_lines
from .resolver import resolve_cell_id


LOGGER = get_logger(__name__)


@dataclass
class GameConfig:
    """Per-game rules."""

    theme: str = ""
    required_bingo_lines: int = DEFAULT_REQUIRED_BINGO_LINES
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    shuffle: bool = True
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not 1 <= self.required_bingo_lines <= MAX_REQUIRED_BINGO_LINES:
            raise ValueError(
                f"required_bingo_lines must be between 1 and {MAX_REQUIRED_BINGO_LINES}"
            )
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be between 0 and 1")

    def to_jsonable(self) -> dict:
        return {
            "theme": self.theme,
            "required_bingo_lines": self.required_bingo_lines,
            "confidence_threshold": self.confidence_threshold,
            "shuffle": self.shuffle,
            "seed": self.seed,
        }


@dataclass
class SubmissionOutcome:
    resolved_cell_id: Optional[str]
    accepted: bool
    opened: bool
    new_lines: List[CompletedLine] = field(default_factory=list)
    total_lines: int = 0
    celebration: Celebration = Celebration.NONE
    reason: Optional[str] = None


class SubmissionProcessor:
    """Turns an :class:`AnalysisResult` into board state changes."""

    def __init__(self, config: GameConfig) -> None:
        self.config = config

    def apply(
        self,
        player_board: PlayerBoard,
        analysis: AnalysisResult,
        submission_id: str,
        now: Optional[datetime] = None,
    ) -> SubmissionOutcome:
        """Open the matched cell and record any newly completed lines.

        ``player_board`` is updated in place. Rejections leave it untouched
        and report why through ``SubmissionOutcome.reason``.
        """

        total_before = len(player_board.completed_lines)
        cell_id = resolve_cell_id(analysis.matched_cell_id, player_board.cells)

        def rejected(reason: str, accepted: bool = False) -> SubmissionOutcome:
            LOGGER.info(
                "Submission %s not applied (%s): cell=%s confidence=%.2f threshold=%.2f",
                submission_id,
                reason,
                cell_id,
                analysis.confidence,
                self.config.confidence_threshold,
            )
            return SubmissionOutcome(
                resolved_cell_id=cell_id,
                accepted=accepted,
                opened=False,
                total_lines=total_before,
                reason=reason,
            )

        if cell_id is None:
            return rejected("no_match")
        if analysis.acceptance_status != AcceptanceStatus.ACCEPTED:
            return rejected("not_accepted")
        if analysis.confidence < self.config.confidence_threshold:
            return rejected("low_confidence")

        cell = next((c for c in player_board.cells if c.id == cell_id), None)
        if cell is None:
            return rejected("unknown_cell")
        if cell.is_free or player_board.is_open(cell_id):
            return rejected("already_open", accepted=True)

        stamp = now or datetime.now(timezone.utc)
        player_board.cell_states[cell_id] = CellState(
            is_open=True, opened_at=stamp, opened_by_submission_id=submission_id
        )
        LOGGER.info("Opened %s (%s) for %s", cell_id, cell.subject, player_board.user_id)

        detected = detect_completed_lines(player_board, now=stamp)
        merged, fresh = merge_completed_lines(player_board.completed_lines, detected)
        player_board.completed_lines = merged
        for line in fresh:
            LOGGER.info("Completed %s %d", line.type.value, line.index)

        celebration = decide_celebration(
            total_before, len(merged), self.config.required_bingo_lines
        )
        return SubmissionOutcome(
            resolved_cell_id=cell_id,
            accepted=True,
            opened=True,
            new_lines=fresh,
            total_lines=len(merged),
            celebration=celebration,
        )

    def has_won(self, player_board: PlayerBoard) -> bool:
        return len(player_board.completed_lines) >= self.config.required_bingo_lines
