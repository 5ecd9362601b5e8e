"""Lightweight HTTP client for Gemini API interactions."""

from __future__ import annotations

import base64
import os
import re
from typing import Any, Dict, List, Optional

import requests

from ..utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
# 0 disables extended thinking; photo judging favours latency.
DEFAULT_THINKING_BUDGET = 0

_FENCE_RE = re.compile(r"```(?:json)?\s*|\s*```")


class GeminiAPIError(RuntimeError):
    """Raised when the Gemini API responds with an error payload."""


def strip_code_fence(text: str) -> str:
    """Drop Markdown code fences, including ones opened and closed on one line."""
    if "```" not in text:
        return text.strip()
    return _FENCE_RE.sub("", text).strip()


class GeminiClient:
    """Minimal client around the public Gemini REST API."""

    API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        api_key_env: str = "GEMINI_API_KEY",
        model_env: str = "GEMINI_MODEL",
        timeout_seconds: float = 60.0,
        thinking_budget: int = DEFAULT_THINKING_BUDGET,
    ) -> None:
        self.model_name = os.environ.get(model_env, model_name)
        self.api_key_env = api_key_env
        self.model_env = model_env
        self.timeout_seconds = timeout_seconds
        self.thinking_budget = thinking_budget
        self._api_key = os.environ.get(api_key_env)
        if not self._api_key:
            raise RuntimeError(
                f"Missing Gemini API key in environment variable {self.api_key_env}"
            )

    def generate_json(
        self,
        prompt: str,
        image_bytes: Optional[bytes] = None,
        mime_type: str = "image/jpeg",
        response_schema: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send the prompt (and optional image) and return the JSON text answer."""
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        if image_bytes is not None:
            parts.append(
                {
                    "inlineData": {
                        "mimeType": mime_type,
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    }
                }
            )
        generation_config: Dict[str, Any] = {
            "responseMimeType": "application/json",
            "thinkingConfig": {"thinkingBudget": self.thinking_budget},
        }
        if response_schema:
            generation_config["responseSchema"] = response_schema
        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": generation_config,
        }
        return self._post(payload)

    def _post(self, payload: Dict[str, Any]) -> str:
        url = f"{self.API_BASE}/models/{self.model_name}:generateContent"
        try:
            response = requests.post(
                url,
                params={"key": self._api_key},
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:  # pragma: no cover - network failure
            raise GeminiAPIError(f"Gemini request failed: {exc}") from exc

        data = response.json()
        text = self._extract_text(data)
        if not text:
            LOGGER.warning("Gemini response missing candidates: %s", data)
            raise GeminiAPIError("Gemini API response missing text candidates")
        return text

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> Optional[str]:
        """Extract first textual candidate from the API payload."""
        candidates: List[Dict[str, Any]] = payload.get("candidates") or []
        for candidate in candidates:
            content = candidate.get("content") or {}
            parts: List[Dict[str, Any]] = content.get("parts") or []
            for part in parts:
                text = part.get("text")
                if text:
                    return text
        return None
