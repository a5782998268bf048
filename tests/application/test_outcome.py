# tests/application/test_outcome.py
import pytest

from application.outcome import (
    AnswerIgnored,
    FatalFailure,
    NeedsFollowUp,
    RecoverableFailure,
    Success,
    outcome_kind,
)


class TestOutcomeKind:
    @pytest.mark.parametrize(
        "outcome, kind",
        [
            (Success({"id": 1}), "success"),
            (NeedsFollowUp("fund_selection", {"goal_id": "g"}), "needs_follow_up"),
            (RecoverableFailure("try again"), "recoverable_failure"),
            (FatalFailure("no"), "fatal_failure"),
        ],
    )
    def test_kinds(self, outcome, kind):
        assert outcome_kind(outcome) == kind

    def test_unknown_outcome(self):
        with pytest.raises(TypeError):
            outcome_kind("nope")


class TestAnswerIgnored:
    def test_is_not_ok(self):
        assert AnswerIgnored("double tap").ok is False

    def test_success_defaults_to_empty_payload(self):
        assert Success().payload == {}
