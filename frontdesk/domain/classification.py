"""
ClassificationClient port: understands what the guest is telling us.

AI is used here: the client reads a guest message or call transcript and
returns structured data (intent, sentiment, urgency, summary, suggested
actions) plus a reply the hotel could send back.  Business rules then
operate on that data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

Sentiment = Literal["positive", "neutral", "negative"]

SENTIMENTS: tuple[str, ...] = ("positive", "neutral", "negative")
MIN_URGENCY = 0
MAX_URGENCY = 10
DEFAULT_INTENT = "information"


@dataclass
class ClassificationContext:
    """Everything the classifier may use besides the text itself."""
    hotel_name: str | None = None
    guest_name: str | None = None
    prior_context: str | None = None   # e.g. booking summary, earlier messages
    language: str | None = None        # e.g. "en", "fr"


@dataclass
class ClassificationResult:
    """Structured output of classification, not persisted on its own."""
    intent: str
    sentiment: Sentiment
    urgency: int                     # 0–10 inclusive
    summary: str = ""
    actions: list[str] = field(default_factory=list)
    reply: str = ""                  # natural-language reply to the guest
    confidence: float = 0.5          # 0.0–1.0


def clamp_urgency(value: Any) -> int:
    """Coerce a raw urgency to an int in [0, 10]. Unparseable values give 0."""
    try:
        urgency = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return MIN_URGENCY
    return max(MIN_URGENCY, min(MAX_URGENCY, urgency))


def coerce_sentiment(value: Any) -> Sentiment:
    """Map anything that isn't one of the three sentiments to "neutral"."""
    if isinstance(value, str) and value.strip().lower() in SENTIMENTS:
        return value.strip().lower()  # type: ignore[return-value]
    return "neutral"


def result_from_payload(data: dict[str, Any]) -> ClassificationResult:
    """
    Build a ClassificationResult from a loosely-shaped dict.

    Missing or malformed fields fall back to safe defaults instead of
    raising: the model's output is never trusted to be well-formed.
    """
    intent = data.get("intent")
    if not isinstance(intent, str) or not intent.strip():
        intent = DEFAULT_INTENT

    actions = data.get("actions")
    if not isinstance(actions, list):
        actions = []

    try:
        confidence = float(data.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5

    return ClassificationResult(
        intent=intent.strip().lower(),
        sentiment=coerce_sentiment(data.get("sentiment")),
        urgency=clamp_urgency(data.get("urgency", MIN_URGENCY)),
        summary=str(data.get("summary") or ""),
        actions=[str(a) for a in actions if a],
        reply=str(data.get("reply") or ""),
        confidence=max(0.0, min(1.0, confidence)),
    )


class ClassificationClient(ABC):
    """
    Port: classify free text into a ClassificationResult.

    Implementations may call a language model (ClaudeClassificationClient)
    or use deterministic keyword rules (SimulatorClassificationClient).
    Both must satisfy the same contract:

    - empty text raises InvalidInputError
    - any remote failure raises ClassificationUnavailableError
    - urgency is always within [0, 10], sentiment always one of three values
    - no retries, no persisted side effects
    """

    @abstractmethod
    async def classify(
        self, text: str, context: ClassificationContext
    ) -> ClassificationResult:
        """Classify one message or transcript given the hotel/guest context."""
        ...
