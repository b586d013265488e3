"""Transition legality table"""
import pytest

from cra_workflow.domain.enums import RequestStatus as S
from cra_workflow.engine.status_rules import StatusRules, DEFAULT_TRANSITIONS


@pytest.fixture
def rules():
    return StatusRules()


def test_every_status_has_a_row():
    assert set(DEFAULT_TRANSITIONS) == set(S)


@pytest.mark.parametrize("current,target", [
    (S.DRAFT, S.SUBMITTED),
    (S.SUBMITTED, S.CLARIFICATION_NEEDED),
    (S.CLARIFICATION_NEEDED, S.SUBMITTED),
    (S.UNDER_REVIEW, S.DESIGN_RESULT),
    (S.COSTING_COMPLETE, S.GM_APPROVAL_PENDING),
    (S.GM_REJECTED, S.GM_APPROVAL_PENDING),
    (S.GM_APPROVED, S.CLOSED),
])
def test_legal_moves(rules, current, target):
    assert rules.is_allowed_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (S.DRAFT, S.UNDER_REVIEW),
    (S.SUBMITTED, S.GM_APPROVED),
    (S.CLOSED, S.SUBMITTED),
    (S.CANCELLED, S.DRAFT),
    (S.GM_APPROVED, S.CANCELLED),
    (S.SALES_FOLLOWUP, S.GM_REJECTED),
])
def test_illegal_moves(rules, current, target):
    assert not rules.is_allowed_transition(current, target)


def test_self_transition_allowed_but_not_listed(rules):
    assert rules.is_allowed_transition(S.UNDER_REVIEW, S.UNDER_REVIEW)
    assert S.UNDER_REVIEW not in rules.allowed_transitions(S.UNDER_REVIEW)


def test_self_transition_can_be_disabled():
    rules = StatusRules(allow_self_transitions=False)
    assert not rules.is_allowed_transition(S.SUBMITTED, S.SUBMITTED)


def test_terminal_statuses_have_no_successors(rules):
    assert rules.allowed_transitions(S.CLOSED) == []
    assert rules.allowed_transitions(S.CANCELLED) == []


def test_known_status(rules):
    assert rules.is_known_status("gm_rejected")
    assert rules.is_known_status(S.DRAFT)
    assert not rules.is_known_status("archived")
    assert not rules.is_known_status("")
    assert not rules.is_known_status(None)


def test_custom_table_replaces_default():
    rules = StatusRules({S.DRAFT: [S.CLOSED]})
    assert rules.is_allowed_transition(S.DRAFT, S.CLOSED)
    assert not rules.is_allowed_transition(S.DRAFT, S.SUBMITTED)
    assert rules.allowed_transitions(S.SUBMITTED) == []
