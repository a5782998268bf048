# tests/application/services/test_response_classifier.py
import pytest

from application.outcome import FatalFailure, NeedsFollowUp, RecoverableFailure, Success
from application.ports.backend_gateway import HttpReply, TransportFailure
from application.services.response_classifier import (
    CONNECTION_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    ResponseClassifier,
)
from domain.flow import FollowUpSpec, SubmissionSpec

PLAIN = SubmissionSpec(resource="create_goal")
WITH_FOLLOW_UP = SubmissionSpec(
    resource="create_goal",
    follow_up=FollowUpSpec(flow="fund_selection", id_field="goal_id", flag_field="recommendation_available"),
)


@pytest.fixture
def classifier():
    return ResponseClassifier()


def test_2xx_success_body(classifier) -> None:
    outcome = classifier.classify(HttpReply(200, {"result": "Success", "goal_id": 7}), PLAIN)
    assert outcome == Success({"result": "Success", "goal_id": 7})


@pytest.mark.parametrize(
    "body",
    [
        {"result": "failure", "message": "Duplicate goal"},
        {"result": "FAILED", "message": "Duplicate goal"},
        {"result": "error", "error": "Duplicate goal"},
        {"success": False, "detail": "Duplicate goal"},
    ],
)
def test_failure_indicators_in_2xx_are_fatal(classifier, body) -> None:
    assert classifier.classify(HttpReply(200, body), PLAIN) == FatalFailure("Duplicate goal")


def test_fatal_without_message_uses_generic_text(classifier) -> None:
    assert classifier.classify(HttpReply(201, {"success": False}), PLAIN) == FatalFailure(GENERIC_FAILURE_MESSAGE)


def test_non_2xx_is_recoverable_with_server_message(classifier) -> None:
    outcome = classifier.classify(HttpReply(422, {"message": "PAN already registered"}), PLAIN)
    assert outcome == RecoverableFailure("PAN already registered")


def test_non_2xx_without_json_reports_status(classifier) -> None:
    outcome = classifier.classify(HttpReply(503, None, "<html>down</html>"), PLAIN)
    assert outcome == RecoverableFailure("Server error: 503")


def test_transport_failure(classifier) -> None:
    assert classifier.classify(TransportFailure("timed out"), PLAIN) == RecoverableFailure(CONNECTION_MESSAGE)


def test_unparsable_2xx_is_success(classifier) -> None:
    reply = HttpReply(200, None, "OK")

    assert classifier.classify(reply, PLAIN) == Success({})
    assert classifier.is_unparsed_success(reply) is True


def test_follow_up_when_flag_and_id_present(classifier) -> None:
    reply = HttpReply(200, {"goal_id": "g-1", "recommendation_available": True})

    outcome = classifier.classify(reply, WITH_FOLLOW_UP)

    assert outcome == NeedsFollowUp("fund_selection", {"goal_id": "g-1"})


@pytest.mark.parametrize(
    "body",
    [
        {"goal_id": "g-1", "recommendation_available": False},
        {"goal_id": "g-1"},
        {"recommendation_available": True},
    ],
)
def test_no_follow_up_without_flag_or_id(classifier, body) -> None:
    assert isinstance(classifier.classify(HttpReply(200, body), WITH_FOLLOW_UP), Success)
