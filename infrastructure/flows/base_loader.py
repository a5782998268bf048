# infrastructure/flows/base_loader.py
"""
Builds FlowDefinition domain objects from parsed flow files.

Subclasses only decide how a file is parsed (``_load_file``); the mapping
from plain dicts to domain objects lives here so YAML and JSON flows
behave the same.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from domain.exceptions import FlowDefinitionError
from domain.flow import (
    FlowDefinition,
    FlowMeta,
    FollowUpSpec,
    QuestionItemsSpec,
    SubmissionSpec,
)
from domain.steps.base import PAN_PATTERN, NextRule, OptionSource, StepDescriptor, StepKind


class FlowLoadError(Exception):
    pass


class FlowLoaderBase(ABC):
    def load_from_file(self, path: str | Path) -> FlowDefinition:
        p = Path(path)
        if not p.exists():
            raise FlowLoadError(f"Flow file not found: {p}")

        data = self._load_file(p)
        if data is None:
            raise FlowLoadError(f"Flow file is empty: {p}")
        if not isinstance(data, dict):
            raise FlowLoadError(f"Flow file is invalid: {p}")

        try:
            return self.load_from_dict(data)
        except FlowDefinitionError as e:
            raise FlowLoadError(f"{p}: {e}") from e

    @abstractmethod
    def _load_file(self, path: Path) -> Any:
        ...

    def load_from_dict(self, data: Dict[str, Any]) -> FlowDefinition:
        meta = self._load_meta(data.get("meta") or {})
        steps = self._load_steps(data.get("steps") or [])
        submission = self._load_submission(meta.id, data.get("submission") or {})

        definition = FlowDefinition(meta=meta, steps=steps, submission=submission)
        definition.validate()
        return definition

    def _load_meta(self, data: Dict[str, Any]) -> FlowMeta:
        flow_id = str(data.get("id") or "").strip()
        if not flow_id:
            raise FlowLoadError("Flow meta.id is required")
        return FlowMeta(
            id=flow_id,
            name=data.get("name", flow_id),
            version=data.get("version", 1),
            description=data.get("description", ""),
        )

    def _load_steps(self, steps_data: List[Dict[str, Any]]) -> List[StepDescriptor]:
        return [self._load_step(step_data) for step_data in steps_data]

    def _load_step(self, data: Dict[str, Any]) -> StepDescriptor:
        step_id = data.get("id")
        if not step_id:
            raise FlowLoadError(f"Step without id: {data}")

        raw_kind = str(data.get("kind", "")).lower()
        try:
            kind = StepKind(raw_kind)
        except ValueError:
            raise FlowLoadError(f"Unknown step kind for {step_id}: {raw_kind!r}") from None

        return StepDescriptor(
            id=str(step_id),
            kind=kind,
            prompt=data.get("prompt", ""),
            options=self._strings(data.get("options")),
            validation=data.get("validation"),
            next_rules=self._load_next(data.get("next")),
            default_options=self._strings(data.get("default_options")),
            options_source=self._load_option_source(data.get("options_source")),
            allow_custom=bool(data.get("allow_custom", False)),
            pattern=data.get("pattern", PAN_PATTERN),
            placeholder=data.get("placeholder", ""),
            optional=bool(data.get("optional", False)),
            enabled=bool(data.get("enabled", True)),
        )

    def _load_next(self, data: Any) -> Tuple[NextRule, ...]:
        if data is None:
            return ()
        if isinstance(data, str):
            # shorthand: next: some_step
            return (NextRule(when_expr=None, goto=data),)
        rules: List[NextRule] = []
        for rule_data in data:
            goto = rule_data.get("goto")
            if not goto:
                raise FlowLoadError(f"next rule without goto: {rule_data}")
            rules.append(NextRule(when_expr=rule_data.get("when"), goto=goto))
        return tuple(rules)

    def _load_option_source(self, data: Optional[Dict[str, Any]]) -> Optional[OptionSource]:
        if not data:
            return None
        return OptionSource(kind=data.get("kind", "suggestions"), key=data.get("key", ""), ref=data.get("ref"))

    def _load_submission(self, flow_id: str, data: Dict[str, Any]) -> SubmissionSpec:
        resource = data.get("resource")
        if not resource:
            raise FlowLoadError(f"Flow {flow_id} has no submission.resource")

        items_data = data.get("question_items")
        question_items = None
        if items_data:
            question_items = QuestionItemsSpec(
                field=items_data.get("field", "items"),
                steps=self._strings(items_data.get("steps")),
            )

        follow_data = data.get("follow_up")
        follow_up = None
        if follow_data:
            if not follow_data.get("flow") or not follow_data.get("id_field"):
                raise FlowLoadError(f"Flow {flow_id} follow_up needs flow and id_field")
            follow_up = FollowUpSpec(
                flow=follow_data["flow"],
                id_field=follow_data["id_field"],
                flag_field=follow_data.get("flag_field"),
                seed_key=follow_data.get("seed_key", ""),
            )

        return SubmissionSpec(
            resource=resource,
            owner_field=data.get("owner_field", "phone_number"),
            fields=dict(data.get("fields") or {}),
            integer_fields=self._strings(data.get("integer_fields")),
            seed_fields=self._strings(data.get("seed_fields")),
            question_items=question_items,
            follow_up=follow_up,
        )

    def _strings(self, values: Optional[List[Any]]) -> Tuple[str, ...]:
        return tuple(str(v) for v in (values or []))
