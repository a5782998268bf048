# tests/application/engine/test_next_step_resolver.py
import pytest

from application.engine.next_step_resolver import NextStepResolver
from application.services.condition_evaluator import ConditionEvaluator
from application.services.prompt_renderer import RenderSources
from domain.exceptions import FlowDefinitionError
from domain.step_store import StepDefinitionStore
from domain.steps.base import NextRule, StepKind
from fakes import RecordingLogger, flow, step


def _store():
    return StepDefinitionStore(
        flow(
            "onboarding",
            [
                step(
                    "welcome",
                    StepKind.WELCOME,
                    next_rules=(NextRule("${seed.start_from}==risk", "risk"), NextRule("${seed.skip}==yes", "@end")),
                ),
                step("name", StepKind.FREE_TEXT),
                step("risk", StepKind.FREE_TEXT, next_rules=(NextRule(None, "name"),)),
                step("complete", StepKind.TERMINAL),
            ],
        )
    )


@pytest.fixture
def resolver():
    return NextStepResolver(ConditionEvaluator())


def test_first_matching_rule_wins(resolver) -> None:
    store = _store()
    logger = RecordingLogger()

    target = resolver.resolve(store, store.get_step("welcome"), RenderSources(seed={"start_from": "risk"}), logger)

    assert target == "risk"
    assert logger.events("next.rule_matched")[0]["to_step"] == "risk"


def test_no_match_falls_through_to_successor(resolver) -> None:
    store = _store()

    target = resolver.resolve(store, store.get_step("welcome"), RenderSources(), RecordingLogger())

    assert target == "name"


def test_end_sentinel_goes_to_terminal(resolver) -> None:
    store = _store()

    target = resolver.resolve(store, store.get_step("welcome"), RenderSources(seed={"skip": "yes"}), RecordingLogger())

    assert target == "complete"


def test_else_rule_always_matches(resolver) -> None:
    store = _store()

    assert resolver.resolve(store, store.get_step("risk"), RenderSources(), RecordingLogger()) == "name"


def test_linear_step_uses_list_order(resolver) -> None:
    store = _store()

    assert resolver.resolve(store, store.get_step("name"), RenderSources(), RecordingLogger()) == "risk"


def test_unknown_target_raises(resolver) -> None:
    store = _store()
    broken = step("name", StepKind.FREE_TEXT, next_rules=(NextRule(None, "nowhere"),))
    logger = RecordingLogger()

    with pytest.raises(FlowDefinitionError):
        resolver.resolve(store, broken, RenderSources(), logger)

    assert logger.events("next.target_not_found")
