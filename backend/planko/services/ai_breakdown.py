"""AI-generated subtask breakdowns via the Gemini API."""

import json
import logging
from typing import Optional

import httpx

from ..config import get_config

logger = logging.getLogger(__name__)


class AiBreakdownError(Exception):
    """Raised when the AI service cannot produce a subtask list."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def build_prompt(title: str, description: Optional[str] = None) -> str:
    """Build the breakdown prompt for a task."""
    details = f" (Description: {description})" if description else ""
    return (
        f"You are a project manager. Break down the task '{title}'{details} "
        "into 3-5 actionable subtasks. Return ONLY a raw JSON array of strings "
        '(e.g. ["Task 1", "Task 2"]). Do not use Markdown formatting or code blocks.'
    )


def parse_subtask_titles(text: str) -> list[str]:
    """Parse the model's reply into a list of subtask titles."""
    cleaned = text.replace("```json", "").replace("```", "").strip()

    try:
        titles = json.loads(cleaned or "[]")
    except json.JSONDecodeError:
        logger.error(f"Failed to parse AI response: {cleaned[:200]}")
        raise AiBreakdownError("AI did not return valid JSON")

    if not isinstance(titles, list):
        raise AiBreakdownError("AI response was not an array")

    if not all(isinstance(t, str) for t in titles):
        raise AiBreakdownError("AI response was not an array of strings")

    return [t.strip() for t in titles if t.strip()]


class AiBreakdownService:
    """Asks a language model to split a task into subtasks."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.config = get_config().ai
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def generate_subtask_titles(
        self, title: str, description: Optional[str] = None
    ) -> list[str]:
        """Generate subtask titles for a task."""
        if not self.config.enabled or not self.config.api_key:
            raise AiBreakdownError("AI breakdown is not configured", status_code=503)

        url = f"{self.config.base_url}/models/{self.config.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": build_prompt(title, description)}]}]}

        try:
            response = await self._get_client().post(
                url, params={"key": self.config.api_key}, json=payload
            )
        except httpx.HTTPError as e:
            logger.error(f"AI request failed: {e}")
            raise AiBreakdownError("AI service is unreachable")

        if response.status_code == 429:
            raise AiBreakdownError(
                "AI is busy (Rate Limit). Please try again in a minute.",
                status_code=429,
            )

        try:
            data = response.json()
        except ValueError:
            raise AiBreakdownError(f"AI service returned status {response.status_code}")

        if not isinstance(data, dict):
            raise AiBreakdownError("AI service returned an unexpected response")

        error = data.get("error")
        if response.is_error or error:
            message = error.get("message") if isinstance(error, dict) else response.reason_phrase
            logger.error(f"Gemini API error: {message}")
            raise AiBreakdownError(f"Gemini API Error: {message}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = "[]"

        titles = parse_subtask_titles(text)
        logger.info(f"Generated {len(titles)} subtasks for '{title}'")
        return titles
