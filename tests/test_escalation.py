"""
Escalation policy tests: pure code, no I/O.
"""

import pytest

from frontdesk.domain.classification import ClassificationResult
from frontdesk.domain.escalation import (
    _CATEGORY_BY_INTENT,
    Intent,
    category_for,
    decide,
    parse_intent,
)
from frontdesk.domain.records import Priority, TaskCategory


def _result(urgency, intent="request") -> ClassificationResult:
    return ClassificationResult(intent=intent, sentiment="neutral", urgency=urgency)


@pytest.mark.parametrize(
    "urgency, escalate, priority",
    [
        (0, False, Priority.HIGH),
        (7, False, Priority.HIGH),
        (8, True, Priority.HIGH),
        (9, True, Priority.URGENT),
        (10, True, Priority.URGENT),
    ],
)
def test_threshold_boundaries(urgency, escalate, priority):
    decision = decide(_result(urgency))
    assert decision.should_escalate is escalate
    assert decision.priority is priority


def test_out_of_range_urgency_is_clamped():
    assert decide(_result(-4)).should_escalate is False
    high = decide(_result(99))
    assert high.should_escalate is True
    assert high.priority is Priority.URGENT


def test_decide_is_deterministic():
    result = _result(9, "maintenance")
    assert decide(result) == decide(result)


@pytest.mark.parametrize(
    "intent, category",
    [
        ("request", TaskCategory.GUEST_REQUEST),
        ("complaint", TaskCategory.FRONT_DESK),
        ("maintenance", TaskCategory.MAINTENANCE),
        ("housekeeping", TaskCategory.HOUSEKEEPING),
        ("concierge", TaskCategory.CONCIERGE),
        ("booking", TaskCategory.OTHER),
        ("information", TaskCategory.OTHER),
    ],
)
def test_category_table(intent, category):
    assert category_for(intent) is category


@pytest.mark.parametrize("intent", ["", None, "spa_booking", "REQUEST please"])
def test_unknown_intent_maps_to_other(intent):
    assert category_for(intent) is TaskCategory.OTHER


def test_intent_matching_ignores_case_and_whitespace():
    assert parse_intent(" Complaint ") is Intent.COMPLAINT
    assert category_for("MAINTENANCE") is TaskCategory.MAINTENANCE


def test_every_intent_has_a_category():
    assert set(_CATEGORY_BY_INTENT) == set(Intent)


def test_category_is_always_a_member():
    for intent in list(Intent) + [None]:
        raw = intent.value if intent else "whatever"
        assert decide(_result(9, raw)).category in set(TaskCategory)
