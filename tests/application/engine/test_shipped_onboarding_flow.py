# tests/application/engine/test_shipped_onboarding_flow.py
from __future__ import annotations

import pytest

from domain.flow_state import FlowStatus
from fakes import PHONE, FakeGateway, build_interpreter
from infrastructure.config.settings import PROJECT_ROOT
from infrastructure.flows.catalog import DirectoryFlowCatalog

RISK_STEPS = ["risk", "risk_1", "risk_2", "risk_3", "risk_4"]


@pytest.fixture
def catalog():
    return DirectoryFlowCatalog(PROJECT_ROOT / "flows")


@pytest.fixture
def onboarding(catalog):
    return catalog.get("onboarding")


def _option(definition, step_id: str, index: int) -> str:
    return next(s for s in definition.steps if s.id == step_id).options[index]


def _risk_answers(definition):
    return [_option(definition, step_id, 1) for step_id in RISK_STEPS]


def _expected_risk_questions(definition):
    return {
        "items": [
            {
                "question": "On a scale from chill 🧊 to full-send 🚀 - how comfy are you with taking risks?",
                "answer": _option(definition, "risk", 1),
            },
            {
                "question": "Let's say you invested ₹10,000 and it drops to ₹9,000. What would you do?",
                "answer": _option(definition, "risk_1", 1),
            },
            {
                "question": "How important is it for you to have guaranteed returns?",
                "answer": _option(definition, "risk_2", 1),
            },
            {
                "question": "How would you feel if your investment value dropped 20% temporarily?",
                "answer": _option(definition, "risk_3", 1),
            },
            {
                "question": "What's your primary investment goal?",
                "answer": _option(definition, "risk_4", 1),
            },
        ]
    }


def test_full_onboarding_posts_profile_and_risk_questions(catalog, onboarding) -> None:
    # Arrange
    gateway = FakeGateway()
    interpreter = build_interpreter(onboarding, gateway=gateway, catalog=catalog)
    interpreter.start()

    # Act
    for raw in [
        _option(onboarding, "welcome", 0),
        "Asha",
        "1995-06-15",
        "abcde1234f",
        "₹85,000",
        _option(onboarding, "social_status", 1),
        *_risk_answers(onboarding),
    ]:
        interpreter.submit_answer(raw)

    # Assert
    assert interpreter.status == FlowStatus.SUCCEEDED
    assert gateway.created == [
        (
            "user_onboard",
            {
                "phone_number": PHONE,
                "name": "Asha",
                "dob": "1995-06-15",
                "pan": "ABCDE1234F",
                "income": 85000,
                "marital_status": "👰🤵 Married, no kids yet",
                "risk_questions": _expected_risk_questions(onboarding),
            },
        )
    ]
    assert isinstance(gateway.created[0][1]["income"], int)


def test_returning_user_seeded_for_risk_posts_only_risk_questions(catalog, onboarding) -> None:
    # Arrange
    gateway = FakeGateway()
    interpreter = build_interpreter(onboarding, gateway=gateway, catalog=catalog, seed={"start_from": "risk"})
    interpreter.start()

    # Act
    interpreter.submit_answer(_option(onboarding, "welcome", 0))
    assert interpreter.current_step_id == "risk"
    for raw in _risk_answers(onboarding):
        interpreter.submit_answer(raw)

    # Assert
    assert interpreter.status == FlowStatus.SUCCEEDED
    resource, payload = gateway.created[0]
    assert resource == "user_onboard"
    assert payload == {"phone_number": PHONE, "risk_questions": _expected_risk_questions(onboarding)}
    for profile_field in ("name", "dob", "pan", "income", "marital_status"):
        assert profile_field not in payload
