"""
Flow definition domain model
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from domain.exceptions import FlowDefinitionError
from domain.steps.base import END_SENTINEL, StepDescriptor, StepKind


@dataclass(frozen=True)
class FlowMeta:
    id: str
    name: str
    version: int = 1
    description: str = ""


@dataclass(frozen=True)
class QuestionItemsSpec:
    field: str
    steps: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FollowUpSpec:
    flow: str
    id_field: str
    flag_field: Optional[str] = None
    seed_key: str = ""

    @property
    def effective_seed_key(self) -> str:
        return self.seed_key or self.id_field


@dataclass(frozen=True)
class SubmissionSpec:
    resource: str
    owner_field: str = "phone_number"
    fields: Dict[str, str] = field(default_factory=dict)
    integer_fields: Tuple[str, ...] = ()
    seed_fields: Tuple[str, ...] = ()
    question_items: Optional[QuestionItemsSpec] = None
    follow_up: Optional[FollowUpSpec] = None


@dataclass(frozen=True)
class FlowDefinition:
    """
    Flow aggregate root: an ordered list of steps ending in exactly one
    terminal step, plus the description of what to submit at the end.
    """
    meta: FlowMeta
    steps: List[StepDescriptor]
    submission: SubmissionSpec

    @property
    def id(self) -> str:
        return self.meta.id

    def terminal_step(self) -> StepDescriptor:
        for step in self.steps:
            if step.kind == StepKind.TERMINAL:
                return step
        raise FlowDefinitionError(f"Flow has no terminal step: {self.meta.id}")

    def validate(self) -> None:
        if not self.steps:
            raise FlowDefinitionError(f"Flow has no steps: {self.meta.id}")

        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise FlowDefinitionError(f"Duplicate step id in {self.meta.id}: {step.id}")
            seen.add(step.id)

        terminals = [s for s in self.steps if s.kind == StepKind.TERMINAL]
        if len(terminals) != 1:
            raise FlowDefinitionError(
                f"Flow must have exactly one terminal step: {self.meta.id} (found {len(terminals)})"
            )
        if self.steps[-1].kind != StepKind.TERMINAL:
            raise FlowDefinitionError(f"Terminal step must be last: {self.meta.id}")

        for step in self.steps:
            for rule in step.next_rules:
                if rule.goto != END_SENTINEL and rule.goto not in seen:
                    raise FlowDefinitionError(
                        f"Step {step.id} in {self.meta.id} points to unknown step: {rule.goto}"
                    )
            if step.kind.is_choice and not (step.options or step.default_options):
                raise FlowDefinitionError(
                    f"Choice step {step.id} in {self.meta.id} needs options or default_options"
                )

        items = self.submission.question_items
        if items:
            unknown = [sid for sid in items.steps if sid not in seen]
            if unknown:
                raise FlowDefinitionError(
                    f"question_items in {self.meta.id} reference unknown steps: {', '.join(unknown)}"
                )
