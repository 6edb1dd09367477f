"""
ClaudeClassificationClient: uses the Claude API to classify guest messages.

The system prompt (prompts/classify.txt) is the source of truth for the
intents and the urgency scale.  It returns JSON that maps directly to
ClassificationResult; anything malformed falls back to safe defaults.
"""

import json
import logging

import anthropic

from frontdesk.domain.classification import (
    ClassificationClient,
    ClassificationContext,
    ClassificationResult,
    result_from_payload,
)
from frontdesk.domain.errors import ClassificationUnavailableError, InvalidInputError
from frontdesk.prompts import load_prompt

log = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


def _strip_fences(raw: str) -> str:
    # The model sometimes wraps the JSON in markdown code fences
    if raw.startswith("```"):
        raw = raw.split("```")[1]
        if raw.startswith("json"):
            raw = raw[4:]
    return raw.strip()


class ClaudeClassificationClient(ClassificationClient):
    """Classifier backed by Claude Haiku (fast + cheap). No retries."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 20.0,
        max_tokens: int = 700,
    ):
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )
        self._model = model
        self._max_tokens = max_tokens
        self._system = load_prompt("classify")

    async def classify(
        self, text: str, context: ClassificationContext
    ) -> ClassificationResult:
        if not text or not text.strip():
            raise InvalidInputError("cannot classify empty text")

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=self._system,
                messages=[{"role": "user", "content": self._user_content(text, context)}],
            )
        except anthropic.APIError as exc:
            log.warning("classifier call failed: %s", exc)
            raise ClassificationUnavailableError(str(exc)) from exc

        raw = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        try:
            data = json.loads(_strip_fences(raw))
        except json.JSONDecodeError as exc:
            log.warning("classifier returned non-JSON: %.80r", raw)
            raise ClassificationUnavailableError("malformed classifier response") from exc
        if not isinstance(data, dict):
            raise ClassificationUnavailableError("classifier response is not an object")

        return result_from_payload(data)

    @staticmethod
    def _user_content(text: str, context: ClassificationContext) -> str:
        user_content = f"Hotel: {context.hotel_name or 'Unknown'}\n"
        if context.guest_name:
            user_content += f"Guest: {context.guest_name}\n"
        user_content += f"Reply language: {context.language or 'en'}\n"
        if context.prior_context:
            user_content += f"\nContext:\n{context.prior_context}\n"
        user_content += f"\nGuest message:\n{text}"
        return user_content
