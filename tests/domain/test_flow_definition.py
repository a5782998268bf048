# tests/domain/test_flow_definition.py
import pytest

from domain.exceptions import FlowDefinitionError
from domain.flow import FlowDefinition, FlowMeta, FollowUpSpec, QuestionItemsSpec, SubmissionSpec
from domain.steps.base import NextRule, StepDescriptor, StepKind


def _definition(steps, submission=None):
    return FlowDefinition(
        meta=FlowMeta(id="f", name="f"),
        steps=steps,
        submission=submission or SubmissionSpec(resource="f"),
    )


def _s(step_id, kind=StepKind.FREE_TEXT, **kwargs):
    return StepDescriptor(id=step_id, kind=kind, **kwargs)


class TestFlowDefinitionValidate:
    def test_valid_flow(self):
        definition = _definition([_s("a"), _s("end", StepKind.TERMINAL)])
        definition.validate()
        assert definition.terminal_step().id == "end"
        assert definition.id == "f"

    def test_empty_flow(self):
        with pytest.raises(FlowDefinitionError):
            _definition([]).validate()

    def test_duplicate_ids(self):
        with pytest.raises(FlowDefinitionError, match="Duplicate step id"):
            _definition([_s("a"), _s("a"), _s("end", StepKind.TERMINAL)]).validate()

    def test_terminal_required(self):
        with pytest.raises(FlowDefinitionError, match="exactly one terminal"):
            _definition([_s("a")]).validate()

    def test_terminal_must_be_last(self):
        with pytest.raises(FlowDefinitionError, match="must be last"):
            _definition([_s("end", StepKind.TERMINAL), _s("a")]).validate()

    def test_dangling_goto(self):
        steps = [_s("a", next_rules=(NextRule(None, "missing"),)), _s("end", StepKind.TERMINAL)]
        with pytest.raises(FlowDefinitionError, match="unknown step: missing"):
            _definition(steps).validate()

    def test_end_sentinel_is_a_valid_goto(self):
        steps = [_s("a", next_rules=(NextRule(None, "@end"),)), _s("end", StepKind.TERMINAL)]
        _definition(steps).validate()

    def test_choice_without_any_options(self):
        with pytest.raises(FlowDefinitionError, match="needs options"):
            _definition([_s("c", StepKind.CHOICE_SINGLE), _s("end", StepKind.TERMINAL)]).validate()

    def test_question_items_must_reference_steps(self):
        submission = SubmissionSpec(resource="f", question_items=QuestionItemsSpec("risk_questions", ("nope",)))
        with pytest.raises(FlowDefinitionError, match="nope"):
            _definition([_s("a"), _s("end", StepKind.TERMINAL)], submission).validate()


class TestFollowUpSpec:
    def test_seed_key_defaults_to_id_field(self):
        assert FollowUpSpec(flow="fund_selection", id_field="goal_id").effective_seed_key == "goal_id"

    def test_explicit_seed_key(self):
        spec = FollowUpSpec(flow="fund_selection", id_field="id", seed_key="goal_id")
        assert spec.effective_seed_key == "goal_id"
