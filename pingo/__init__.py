"""Rule engine for Pingo, a photo bingo game.

This package exposes the public API surface via:

- ``pingo.engine.resolver.resolve_cell_id``: maps a judge's answer to a cell id.
- ``pingo.engine.lines.compute_completed_lines``: finds finished rows, columns and diagonals.
- ``pingo.engine.submission.SubmissionProcessor``: applies judged photos to a player board.
"""

from .engine.lines import compute_completed_lines, detect_completed_lines
from .engine.resolver import resolve_cell_id
from .engine.submission import GameConfig, SubmissionProcessor

__all__ = [
    "compute_completed_lines",
    "detect_completed_lines",
    "resolve_cell_id",
    "GameConfig",
    "SubmissionProcessor",
]

__version__ = "0.1.0"
