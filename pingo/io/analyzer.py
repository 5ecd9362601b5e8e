"""Photo judging against the player's open bingo cells."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..core.constants import AcceptanceStatus
from ..core.exceptions import AnalysisError
from ..core.models import AnalysisResult, Cell, PlayerBoard
from ..engine.resolver import resolve_cell_id
from ..utils.logger import get_logger
from .gemini_client import GeminiClient, strip_code_fence


LOGGER = get_logger(__name__)

ALL_OPEN_CRITIQUE_JA = "すべてのセルが開かれています。分析は不要です。"
ALL_OPEN_CRITIQUE_EN = "All cells are already opened. No analysis needed."


class ImageAnalyzer(Protocol):
    def analyze(
        self,
        image_bytes: bytes,
        player_board: PlayerBoard,
        theme: str,
        mime_type: str = "image/jpeg",
    ) -> AnalysisResult:
        """Judge the photo against the player's remaining cells."""


def available_cells(player_board: PlayerBoard) -> List[Cell]:
    """Cells a photo can still open: not free and not yet opened."""
    return [
        cell
        for cell in player_board.cells
        if not cell.is_free and not player_board.is_open(cell.id)
    ]


RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "matchedCellId": {
            "type": "STRING",
            "nullable": True,
            "description": "ID of the matched cell, null if no match",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence score between 0.0 and 1.0",
        },
        "critique_ja": {
            "type": "STRING",
            "description": "Comprehensive analysis in Japanese (minimum 3-4 sentences)",
        },
        "critique_en": {
            "type": "STRING",
            "description": "Comprehensive analysis in English (minimum 3-4 sentences)",
        },
        "acceptanceStatus": {
            "type": "STRING",
            "enum": [status.value for status in AcceptanceStatus],
            "description": "Final acceptance status",
        },
    },
    "required": ["confidence", "acceptanceStatus"],
}


ANALYSIS_PROMPT = (
    "You are an expert image analyzer for a photo bingo game.\n\n"
    "Analyze the provided image and determine if it matches any of the available bingo cells.\n\n"
    "Game Theme: {theme}\n\n"
    "Available Cells (not yet opened):\n"
    "{cell_lines}\n\n"
    "Analysis Criteria:\n"
    "1. The image must clearly show the subject described in one of the available cells\n"
    "2. The subject must be the main focus or clearly visible in the image\n"
    "3. The image must be appropriate for all ages (no offensive content)\n"
    "4. Confidence threshold will be applied by the system (you provide raw confidence)\n\n"
    "Provide:\n"
    "- matchedCellId: The ID of the best matching cell (null if no good match)\n"
    "- confidence: Confidence score from 0.0 to 1.0 (be conservative but fair)\n"
    "- critique_ja: Comprehensive explanation in Japanese (minimum 3-4 sentences) of what the "
    "image shows and why it does or does not match each available subject.\n"
    "- critique_en: The same explanation in English (minimum 3-4 sentences).\n"
    '- acceptanceStatus: "accepted" (good match), "no_match" (no suitable match), '
    'or "inappropriate_content" (inappropriate image)\n\n'
    "Be thorough in your analysis but conservative in matching. Only match if you're "
    "reasonably confident the image shows the requested subject."
)


def render_analysis_prompt(cells: Sequence[Cell], theme: str) -> str:
    cell_lines = "\n".join(
        f'{number}. ID: {cell.id}, Subject: "{cell.subject}"'
        for number, cell in enumerate(cells, start=1)
    )
    return ANALYSIS_PROMPT.format(theme=theme, cell_lines=cell_lines)


def parse_analysis_response(text: str, cells: Sequence[Cell]) -> AnalysisResult:
    """Validate the judge's JSON answer and resolve its cell reference."""

    try:
        data = json.loads(strip_code_fence(text or ""))
    except json.JSONDecodeError as exc:
        LOGGER.warning("Analysis payload is not JSON: %r", text)
        raise AnalysisError(f"Analysis payload is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AnalysisError("Analysis payload must be a JSON object")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise AnalysisError(f"Invalid confidence value: {confidence!r}")

    try:
        status = AcceptanceStatus(data.get("acceptanceStatus"))
    except ValueError as exc:
        raise AnalysisError(
            f"Unknown acceptance status: {data.get('acceptanceStatus')!r}"
        ) from exc

    matched = data.get("matchedCellId")
    if matched is not None and not isinstance(matched, str):
        raise AnalysisError(f"Invalid matchedCellId: {matched!r}")

    resolved = resolve_cell_id(matched, cells)
    if matched and resolved != matched:
        LOGGER.info("Judge answered %r; resolved to %s", matched, resolved)

    return AnalysisResult(
        matched_cell_id=resolved,
        confidence=min(1.0, max(0.0, float(confidence))),
        critique_ja=str(data.get("critique_ja") or ""),
        critique_en=str(data.get("critique_en") or ""),
        acceptance_status=status,
    )


class GeminiImageAnalyzer:
    """Image judge backed by the Gemini API."""

    def __init__(self, gemini_client: Optional[GeminiClient] = None) -> None:
        self._client = gemini_client

    def analyze(
        self,
        image_bytes: bytes,
        player_board: PlayerBoard,
        theme: str,
        mime_type: str = "image/jpeg",
    ) -> AnalysisResult:
        cells = available_cells(player_board)
        if not cells:
            LOGGER.info("All cells already open for %s; skipping analysis", player_board.user_id)
            return AnalysisResult(
                matched_cell_id=None,
                confidence=0.0,
                critique_ja=ALL_OPEN_CRITIQUE_JA,
                critique_en=ALL_OPEN_CRITIQUE_EN,
                acceptance_status=AcceptanceStatus.NO_MATCH,
            )

        client = self._client or GeminiClient()
        self._client = client
        prompt = render_analysis_prompt(cells, theme)
        text = client.generate_json(
            prompt,
            image_bytes=image_bytes,
            mime_type=mime_type,
            response_schema=RESPONSE_SCHEMA,
        )
        return parse_analysis_response(text, cells)
