"""
Escalation policy: decides whether a classified message needs a human.

Pure code, no I/O: the classifier produces data, this module applies the
business rules to it.  Identical input always yields identical output.
"""

from dataclasses import dataclass
from enum import Enum

from frontdesk.domain.classification import ClassificationResult, clamp_urgency
from frontdesk.domain.records import Priority, TaskCategory

ESCALATION_THRESHOLD = 7   # strictly above this opens a task
URGENT_THRESHOLD = 8       # strictly above this makes the task URGENT


class Intent(Enum):
    """Intents the classifier is asked to choose from."""
    REQUEST = "request"
    COMPLAINT = "complaint"
    MAINTENANCE = "maintenance"
    HOUSEKEEPING = "housekeeping"
    CONCIERGE = "concierge"
    BOOKING = "booking"
    CANCELLATION = "cancellation"
    MODIFICATION = "modification"
    INFORMATION = "information"


# Every Intent member must appear here; test_escalation checks exhaustiveness.
_CATEGORY_BY_INTENT: dict[Intent, TaskCategory] = {
    Intent.REQUEST: TaskCategory.GUEST_REQUEST,
    Intent.COMPLAINT: TaskCategory.FRONT_DESK,
    Intent.MAINTENANCE: TaskCategory.MAINTENANCE,
    Intent.HOUSEKEEPING: TaskCategory.HOUSEKEEPING,
    Intent.CONCIERGE: TaskCategory.CONCIERGE,
    Intent.BOOKING: TaskCategory.OTHER,
    Intent.CANCELLATION: TaskCategory.OTHER,
    Intent.MODIFICATION: TaskCategory.OTHER,
    Intent.INFORMATION: TaskCategory.OTHER,
}


@dataclass(frozen=True)
class EscalationDecision:
    should_escalate: bool
    priority: Priority        # only meaningful when should_escalate
    category: TaskCategory


def parse_intent(raw: str | None) -> Intent | None:
    """Return the Intent for a raw classifier string, or None if unknown."""
    if not raw:
        return None
    try:
        return Intent(raw.strip().lower())
    except ValueError:
        return None


def category_for(raw_intent: str | None) -> TaskCategory:
    """Map a raw intent string to a task category. Unknown → OTHER."""
    intent = parse_intent(raw_intent)
    if intent is None:
        return TaskCategory.OTHER
    return _CATEGORY_BY_INTENT[intent]


def decide(result: ClassificationResult) -> EscalationDecision:
    """Apply the escalation rules to one classification result. Never raises."""
    urgency = clamp_urgency(result.urgency)
    return EscalationDecision(
        should_escalate=urgency > ESCALATION_THRESHOLD,
        priority=Priority.URGENT if urgency > URGENT_THRESHOLD else Priority.HIGH,
        category=category_for(result.intent),
    )
