from __future__ import annotations

from application.ports.logger import LoggerPort
from application.services.condition_evaluator import ConditionEvaluator
from application.services.prompt_renderer import RenderSources
from domain.exceptions import FlowDefinitionError
from domain.step_store import StepDefinitionStore
from domain.steps.base import END_SENTINEL, StepDescriptor


class NextStepResolver:
    def __init__(self, conditions: ConditionEvaluator):
        self._conditions = conditions

    def resolve(
        self,
        store: StepDefinitionStore,
        step: StepDescriptor,
        src: RenderSources,
        logger: LoggerPort,
    ) -> str:
        """
        First matching ``next`` rule wins; a rule without ``when`` is the else
        branch. No rules, or no match, means the positional successor.
        """
        for rule in step.next_rules:
            if rule.when_expr is not None and not self._conditions.evaluate(rule.when_expr, src):
                continue

            target = store.terminal_step_id() if rule.goto == END_SENTINEL else rule.goto
            if not store.has_step(target):
                logger.error("next.target_not_found", step_id=step.id, goto_step_id=target)
                raise FlowDefinitionError(f"goto target not found: {target} (from {step.id})")

            logger.debug("next.rule_matched", step_id=step.id, when=rule.when_expr, to_step=target)
            return target

        return store.successor(step.id)
