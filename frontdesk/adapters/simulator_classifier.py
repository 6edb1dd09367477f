"""
SimulatorClassificationClient: deterministic keyword-based classifier for tests.

No LLM calls, no network.  Recognises the most common English phrases
guests use when writing to a front desk; good enough to drive the
pipelines end to end and to exercise every escalation path.
"""

import re

from frontdesk.domain.classification import (
    ClassificationClient,
    ClassificationContext,
    ClassificationResult,
)
from frontdesk.domain.errors import InvalidInputError

# Checked in order: the first intent with a matching keyword wins.
_INTENT_KEYWORDS: list[tuple[str, list[str]]] = [
    ("maintenance", [
        r"\bbroken\b", r"\bleak(?:ing|s)?\b", r"\bnot working\b", r"\bdoesn'?t work\b",
        r"\bheating\b", r"\bair ?con(?:ditioning)?\b", r"\bhot water\b", r"\bflood(?:ed|ing)?\b",
        r"\blocked out\b",
    ]),
    ("housekeeping", [
        r"\btowels?\b", r"\bclean(?:ing|ed)?\b", r"\blinens?\b", r"\bsheets?\b",
        r"\bpillows?\b", r"\bminibar\b",
    ]),
    ("concierge", [
        r"\brestaurants?\b", r"\btickets?\b", r"\btours?\b", r"\brecommend\w*\b",
        r"\bmuseum\b",
    ]),
    ("complaint", [
        r"\bcomplain\w*\b", r"\bproblem\b", r"\bunacceptable\b", r"\bnoisy\b", r"\brude\b",
    ]),
    ("cancellation", [r"\bcancel\w*\b"]),
    ("modification", [r"\bchange\b", r"\bmodify\b", r"\bextend\b", r"\bpostpone\b"]),
    ("booking", [r"\bbook(?:ing)?\b", r"\breservation\b", r"\bavailability\b"]),
    ("request", [r"\brequest\b", r"\bneed\b", r"\bcould you bring\b", r"\btaxi\b"]),
]

_NEGATIVE = [r"\bbad\b", r"\bterrible\b", r"\bawful\b", r"\bdisappointed\b",
             r"\bangry\b", r"\bfrustrated\b", r"\bunacceptable\b", r"\bdisgusting\b"]
_POSITIVE = [r"\bgreat\b", r"\bexcellent\b", r"\bwonderful\b", r"\bthank(?:s| you)\b",
             r"\bappreciate\b", r"\blove\b"]

# (urgency, keywords), highest first
_URGENCY_LEVELS: list[tuple[int, list[str]]] = [
    (9, [r"\bemergency\b", r"\burgent(?:ly)?\b", r"\bimmediately\b", r"\bfire\b"]),
    (8, [r"\bleak(?:ing|s)?\b", r"\bflood(?:ed|ing)?\b", r"\blocked out\b"]),
    (7, [r"\basap\b", r"\bsoon\b", r"\bright now\b"]),
    (5, [r"\bwhen\b", r"\btime\b"]),
]
_DEFAULT_URGENCY = 3

_REPLIES = {
    "maintenance": "We're sorry about the inconvenience. Our maintenance team will take a look.",
    "housekeeping": "Of course! Housekeeping will take care of it shortly.",
    "concierge": "Our concierge will be happy to help and will get back to you with suggestions.",
    "complaint": "We're very sorry to hear that. A member of our team will follow up with you.",
    "cancellation": "We've received your cancellation request and will confirm it shortly.",
    "modification": "We've received your change request and will confirm the details shortly.",
    "booking": "Thank you for your interest! We'll check availability and get back to you.",
    "request": "Thank you, we're on it.",
    "information": "Thank you for your message. We'll get back to you with the details.",
}


def _match_any(text: str, patterns: list[str]) -> bool:
    lower = text.lower()
    return any(re.search(p, lower) for p in patterns)


def _detect_intent(text: str) -> str:
    for intent, patterns in _INTENT_KEYWORDS:
        if _match_any(text, patterns):
            return intent
    return "information"


def _detect_sentiment(text: str) -> str:
    if _match_any(text, _NEGATIVE):
        return "negative"
    if _match_any(text, _POSITIVE):
        return "positive"
    return "neutral"


def _detect_urgency(text: str) -> int:
    for level, patterns in _URGENCY_LEVELS:
        if _match_any(text, patterns):
            return level
    return _DEFAULT_URGENCY


class SimulatorClassificationClient(ClassificationClient):
    """
    Keyword-based classifier for tests and local development.
    Same text in, same result out.
    """

    async def classify(
        self, text: str, context: ClassificationContext
    ) -> ClassificationResult:
        if not text or not text.strip():
            raise InvalidInputError("cannot classify empty text")

        intent = _detect_intent(text)
        urgency = _detect_urgency(text)

        greeting = f"Hello {context.guest_name}, " if context.guest_name else "Hello, "
        reply = greeting + _REPLIES[intent]
        if urgency > 7:
            reply += " Our team has been alerted."

        return ClassificationResult(
            intent=intent,
            sentiment=_detect_sentiment(text),  # type: ignore[arg-type]
            urgency=urgency,
            summary=f"{intent}: {text.strip()[:80]}",
            actions=[f"Follow up on {intent}"] if intent != "information" else [],
            reply=reply,
            confidence=0.85 if intent != "information" else 0.6,
        )
