"""Board subject generation interfaces."""

from __future__ import annotations

import json
from typing import List, Optional, Protocol

from ..core.constants import SUBJECT_COUNT
from ..core.exceptions import SubjectGenerationError
from ..utils.logger import get_logger
from .gemini_client import GeminiClient, strip_code_fence


LOGGER = get_logger(__name__)

DEFAULT_CANDIDATE_COUNT = 25
MAX_CANDIDATE_COUNT = 30


class SubjectGenerator(Protocol):
    """Protocol implemented by all subject providers."""

    def generate(
        self, title: str, theme: str,
        count: int = DEFAULT_CANDIDATE_COUNT, language: str = "en",
    ) -> List[str]:
        ...


class GeminiSubjectGenerator:
    """LLM-powered subject suggestions using the Gemini API."""

    SUBJECT_PROMPT = (
        "You are the expert in suggesting specific objects or subjects suitable for a photo "
        "bingo game based on the given criteria.\n"
        "Suggest **{count}** distinct objects or subjects that can be photographed at the "
        "specified title and theme, matching the following conditions.\n"
        "Focus on concrete nouns or short descriptive phrases that clearly identify the "
        "target for a photo.\n"
        "An image model will decide whether a photo matches each suggestion, so keep them "
        "visually identifiable and relatively unambiguous.\n"
        "Candidates must not be offensive to public order and morals and must be safe for "
        "children to see or approach.\n"
        "If the given title or theme is offensive to public order and morals, return an "
        "error with the reason.\n\n"
        "Candidates must respond in {language}.\n\n"
        "# Conditions\n\n"
        "- Title: {title}\n"
        "- Theme: {theme}\n\n"
        "# Output Format\n\n"
        '- Strictly output a JSON object with a single key "candidates".\n'
        '- The value of "candidates" must be a JSON array of strings.\n'
        "- Each string must be only the name of the object or subject "
        '(e.g., "White seashells", "wooden bench", "fisherman"), not a sentence.\n\n'
        "Error response example for an immoral title/theme:\n"
        '{{"error": "The given theme contains racist expressions."}}'
    )

    def __init__(self, gemini_client: Optional[GeminiClient] = None) -> None:
        self._client = gemini_client

    def generate(
        self, title: str, theme: str,
        count: int = DEFAULT_CANDIDATE_COUNT, language: str = "en",
    ) -> List[str]:
        if not 1 <= count <= MAX_CANDIDATE_COUNT:
            raise ValueError(f"count must be between 1 and {MAX_CANDIDATE_COUNT}")
        client = self._client or GeminiClient()
        self._client = client
        prompt = self._render_prompt(title, theme, count, language)
        return self._parse_response(client.generate_json(prompt))

    @classmethod
    def _render_prompt(cls, title: str, theme: str, count: int, language: str) -> str:
        return cls.SUBJECT_PROMPT.format(
            title=title or theme, theme=theme, count=count, language=language
        )

    @staticmethod
    def _parse_response(text: str) -> List[str]:
        try:
            data = json.loads(strip_code_fence(text or ""))
        except json.JSONDecodeError as exc:
            LOGGER.warning("Subject payload is not JSON: %r", text)
            raise SubjectGenerationError(f"Failed to parse subject response: {exc}") from exc
        if not isinstance(data, dict):
            raise SubjectGenerationError("Subject response must be a JSON object")
        if data.get("error"):
            raise SubjectGenerationError(f"Theme rejected: {data['error']}")

        candidates = data.get("candidates")
        if not isinstance(candidates, list):
            raise SubjectGenerationError("Subject response missing candidates")

        subjects: List[str] = []
        for item in candidates:
            if not isinstance(item, str):
                continue
            subject = item.strip()
            if subject and subject not in subjects:
                subjects.append(subject)
        return subjects


def subjects_for_board(
    generator: SubjectGenerator, title: str, theme: str, language: str = "en"
) -> List[str]:
    """Ask ``generator`` for candidates and keep the first 24 for a board."""

    subjects = generator.generate(title, theme, DEFAULT_CANDIDATE_COUNT, language)
    if len(subjects) < SUBJECT_COUNT:
        raise SubjectGenerationError(
            f"Need {SUBJECT_COUNT} distinct subjects, generator returned {len(subjects)}"
        )
    LOGGER.info("Generated %d subjects for theme %r", len(subjects), theme)
    return subjects[:SUBJECT_COUNT]
