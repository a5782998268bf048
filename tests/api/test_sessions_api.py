from __future__ import annotations

import pytest
from fastapi import HTTPException

from api import main
from api.main import AnswerRequest, AnswerResponse, StartSessionRequest, ToggleRequest
from application.ports.backend_gateway import HttpReply
from domain.money import STARTING_FRESH
from domain.steps.base import StepKind
from fakes import PHONE, DictCatalog, FakeGateway, flow, step
from infrastructure.scheduling.inline_scheduler import InlineScheduler


@pytest.fixture
def gateway(monkeypatch):
    main.SESSIONS._sessions.clear()
    main.FLOW_LOG_STORE._logs.clear()
    fake = FakeGateway(
        replies=[
            HttpReply(200, {"goal_id": "g-1", "recommendation_available": True}),
            HttpReply(200, {"result": "Success"}),
        ],
        follow_up=HttpReply(200, {"funds": [{"fund_name": "Nifty 50 Index"}, {"fund_name": "Liquid"}]}),
    )
    monkeypatch.setattr(main, "GATEWAY", fake)
    monkeypatch.setattr(main, "SCHEDULER", InlineScheduler())
    return fake


def _start(flow_id="create_goal", **kwargs):
    return main.start_session(flow_id, StartSessionRequest(phone_number="98765-43210", **kwargs))


def _answer(session_id, value, step_id=None):
    return main.submit_answer(session_id, AnswerRequest(value=value, step_id=step_id), wait_sec=None)


def test_create_goal_chains_into_fund_selection(gateway) -> None:
    # Arrange
    session = _start()
    sid = session.session_id

    # Act
    _answer(sid, "Let's go")
    picked = _answer(sid, "Dream car")
    amount = _answer(sid, "5,00,000")
    _answer(sid, "Dec 2030")
    saved = _answer(sid, "")

    # Assert
    assert session.step_id == "welcome"
    assert picked.session.step_id == "target_amount"
    assert amount.accepted and amount.display.startswith("₹")
    assert saved.display == STARTING_FRESH

    after = main.get_session(sid, wait_sec=None)
    assert after.flow_id == "fund_selection"
    assert after.step_id == "fund"
    assert after.options == ["Nifty 50 Index", "Liquid"]
    assert after.last_outcome.kind == "needs_follow_up"
    assert after.history[0].flow_id == "create_goal"
    resource, payload = gateway.created[0]
    assert resource == "create_goal"
    assert payload == {
        "phone_number": PHONE,
        "goal_name": "Dream car",
        "target_amount": 500000,
        "target_date": "Dec 2030",
        "current_amount": 0,
    }

    final = _answer(sid, "Liquid")

    assert final.session.status == "succeeded"
    assert gateway.created[-1] == ("fund_selection", {"phone_number": PHONE, "goal_id": "g-1", "fund_name": "Liquid"})


def test_rejected_answer_keeps_step(gateway) -> None:
    sid = _start().session_id
    _answer(sid, "go")
    _answer(sid, "Dream car")

    response = _answer(sid, "-5")

    assert response.accepted is False
    assert response.ignored is False
    assert response.message == "Please enter a valid amount"
    assert response.session.step_id == "target_amount"


def test_stale_answer_is_ignored(gateway) -> None:
    sid = _start().session_id
    _answer(sid, "go")

    response = _answer(sid, "Hello", step_id="welcome")

    assert response.ignored is True
    assert response.session.step_id == "goal_name"


def test_seed_routes_onboarding_to_risk(gateway) -> None:
    sid = _start("onboarding", seed={"start_from": "risk"}).session_id

    response = _answer(sid, "Let's go")

    assert response.session.step_id == "risk"


def test_start_errors(gateway) -> None:
    with pytest.raises(HTTPException) as bad_phone:
        main.start_session("create_goal", StartSessionRequest(phone_number="12345"))
    with pytest.raises(HTTPException) as unknown_flow:
        _start("no_such_flow")
    with pytest.raises(HTTPException) as bad_step:
        _start(initial_step_id="creating")

    assert bad_phone.value.status_code == 400
    assert unknown_flow.value.status_code == 404
    assert bad_step.value.status_code == 400
    assert main.SESSIONS.list_ids() == []


def test_unknown_session_is_404(gateway) -> None:
    with pytest.raises(HTTPException) as exc:
        main.get_session("missing", wait_sec=None)

    assert exc.value.status_code == 404


def test_wait_sec_limit(gateway) -> None:
    sid = _start().session_id

    with pytest.raises(HTTPException) as exc:
        main.get_session(sid, wait_sec=main.MAX_WAIT_SEC + 1)

    assert exc.value.status_code == 400


def test_toggle_and_retry_conflicts(gateway) -> None:
    sid = _start().session_id
    _answer(sid, "go")

    with pytest.raises(HTTPException) as toggle:
        main.toggle_option(sid, ToggleRequest(option="Dream car"))
    with pytest.raises(HTTPException) as retry:
        main.retry_submission(sid, wait_sec=None)

    assert toggle.value.status_code == 409
    assert retry.value.status_code == 409


def test_retry_after_server_error(gateway) -> None:
    gateway.replies = [HttpReply(500, {"message": "Database busy"}), HttpReply(200, {"result": "Success"})]
    sid = _start().session_id
    for value in ("go", "Dream car", "100000", "2030", "0"):
        _answer(sid, value)

    failed = main.get_session(sid, wait_sec=None)
    retried = main.retry_submission(sid, wait_sec=1)

    assert failed.status == "awaiting_retry"
    assert failed.failure_reason == "Database busy"
    assert retried.status == "succeeded"
    assert len(gateway.created) == 2


def test_logs_are_masked_and_dropped_on_abandon(gateway) -> None:
    sid = _start().session_id
    for value in ("go", "Dream car", "100000", "2030", "0"):
        _answer(sid, value)

    logs = main.get_session_logs(sid)

    events = [entry.event for entry in logs]
    assert events[0] == "flow.start"
    assert "submission.start" in events
    assert all(PHONE not in str(entry.fields) for entry in logs)

    main.abandon_session(sid)

    assert main.SESSIONS.get(sid) is None
    assert main.FLOW_LOG_STORE.list(sid) == []


def test_toggle_is_accepted_without_moving_the_flow(gateway, monkeypatch) -> None:
    # Arrange
    prefs = flow(
        "prefs",
        [step("assets", StepKind.CHOICE_MULTI, options=("Gold", "Debt", "Equity")), step("done", StepKind.TERMINAL)],
    )
    monkeypatch.setattr(main, "CATALOG", DictCatalog(prefs))
    sid = _start("prefs").session_id

    # Act
    response = main.toggle_option(sid, ToggleRequest(option="Gold"))

    # Assert
    assert response.accepted is True
    assert response.session.step_id == "assets"
    assert response.session.selection == ["Gold"]
    assert "toggled" in AnswerResponse.model_fields["accepted"].description
