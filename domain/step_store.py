from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional, Set, Tuple

from domain.exceptions import FlowDefinitionError
from domain.flow import FlowDefinition
from domain.steps.base import StepDescriptor, StepKind


class StepDefinitionStore:
    """
    Read-only view over a flow's steps. The only runtime mutation allowed is
    replacing a choice step's options once they have been fetched; ids and
    positions never change.
    """

    def __init__(self, definition: FlowDefinition):
        definition.validate()
        self._definition = definition
        self._order: List[str] = [s.id for s in definition.steps]
        self._steps: Dict[str, StepDescriptor] = {s.id: s for s in definition.steps}
        self._options: Dict[str, Tuple[str, ...]] = {
            s.id: tuple(s.options or s.default_options)
            for s in definition.steps
            if s.kind.is_choice
        }
        self._pending: Set[str] = set()
        self._lock = Lock()

    @property
    def definition(self) -> FlowDefinition:
        return self._definition

    @property
    def flow_id(self) -> str:
        return self._definition.id

    def get_step(self, step_id: str) -> StepDescriptor:
        step = self._steps.get(step_id)
        if step is None:
            raise FlowDefinitionError(f"Unknown step id in {self.flow_id}: {step_id}")
        with self._lock:
            options = self._options.get(step_id)
        if options is None:
            return step
        return step.with_options(options)

    def has_step(self, step_id: str) -> bool:
        return step_id in self._steps

    def get_initial_step_id(self) -> str:
        for step_id in self._order:
            if self._steps[step_id].enabled:
                return step_id
        raise FlowDefinitionError(f"Flow has no enabled steps: {self.flow_id}")

    def is_terminal(self, step_id: str) -> bool:
        return self.get_step(step_id).kind == StepKind.TERMINAL

    def terminal_step_id(self) -> str:
        return self._definition.terminal_step().id

    def successor(self, step_id: str) -> str:
        """Next enabled step in list order. The terminal step is always last."""
        if step_id not in self._steps:
            raise FlowDefinitionError(f"Unknown step id in {self.flow_id}: {step_id}")
        idx = self._order.index(step_id)
        for candidate in self._order[idx + 1:]:
            if self._steps[candidate].enabled:
                return candidate
        raise FlowDefinitionError(f"No step after {step_id} in {self.flow_id}")

    def enabled_step_ids(self) -> List[str]:
        return [sid for sid in self._order if self._steps[sid].enabled]

    def dynamic_steps(self) -> Iterable[StepDescriptor]:
        return [s for s in self._definition.steps if s.options_source is not None]

    def inject_options(self, step_id: str, options: Optional[Iterable[str]]) -> Tuple[str, ...]:
        step = self._steps.get(step_id)
        if step is None:
            raise FlowDefinitionError(f"Unknown step id in {self.flow_id}: {step_id}")
        if not step.kind.is_choice:
            raise FlowDefinitionError(f"Step {step_id} in {self.flow_id} does not take options")

        cleaned = tuple(str(o) for o in (options or []) if str(o).strip())
        if not cleaned:
            cleaned = tuple(step.default_options or step.options)
        with self._lock:
            self._options[step_id] = cleaned
            self._pending.discard(step_id)
        return cleaned

    def mark_pending(self, step_id: str) -> None:
        with self._lock:
            self._pending.add(step_id)

    def is_pending(self, step_id: str) -> bool:
        with self._lock:
            return step_id in self._pending
