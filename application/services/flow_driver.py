from __future__ import annotations

from typing import Any, Dict, Optional

from application.engine.flow_interpreter import AnswerOutcome, FlowInterpreter
from application.engine.flow_view import FlowView
from application.outcome import NeedsFollowUp, SubmissionOutcome
from application.ports.presentation import PresentationSurfacePort
from domain.flow_state import FlowStatus
from domain.validation import Rejected


class FlowDriver:
    """
    Wires user events from a presentation surface to a FlowInterpreter and
    pushes the resulting views back. Answers are pinned to the step that was
    last rendered, so a late tap on an old prompt is ignored.
    """

    def __init__(self, interpreter: FlowInterpreter, surface: PresentationSurfacePort):
        self._interpreter = interpreter
        self._surface = surface
        self._shown_step_id: Optional[str] = None
        self._outcome_rendered = False
        interpreter.subscribe(self._on_outcome)

    @property
    def interpreter(self) -> FlowInterpreter:
        return self._interpreter

    def begin(
        self,
        initial_step_id: Optional[str] = None,
        seed_answers: Optional[Dict[str, Any]] = None,
    ) -> FlowView:
        view = self._interpreter.start(initial_step_id, seed_answers)
        if self._interpreter.status == FlowStatus.IN_PROGRESS:
            self._show(view)
        return view

    def on_user_input(self, raw: Any) -> AnswerOutcome:
        self._outcome_rendered = False
        outcome = self._interpreter.submit_answer(raw, step_id=self._shown_step_id)
        return self._after_input(outcome)

    def on_toggle(self, option: str) -> AnswerOutcome:
        self._outcome_rendered = False
        outcome = self._interpreter.toggle_option(option)
        return self._after_input(outcome)

    def on_done(self) -> AnswerOutcome:
        self._outcome_rendered = False
        outcome = self._interpreter.confirm_selection()
        return self._after_input(outcome)

    def on_retry(self) -> FlowView:
        view = self._interpreter.retry()
        if view.status != FlowStatus.SUBMITTING:
            return view
        self._show(view)
        return view

    def on_cancel(self) -> FlowView:
        self._interpreter.abandon()
        view = self._interpreter.view()
        self._show(view)
        return view

    def _after_input(self, outcome: AnswerOutcome) -> AnswerOutcome:
        # an inline scheduler may already have rendered the submission result
        rendered, self._outcome_rendered = self._outcome_rendered, False
        if isinstance(outcome, Rejected):
            self._surface.render_rejection(outcome.message)
        elif outcome.ok and not rendered and self._interpreter.status in (FlowStatus.IN_PROGRESS, FlowStatus.SUBMITTING):
            self._show(self._interpreter.view())
        return outcome

    def _on_outcome(self, outcome: SubmissionOutcome) -> None:
        self._outcome_rendered = True
        if isinstance(outcome, NeedsFollowUp):
            self._show(self._interpreter.view())
            return
        self._surface.render_terminal_outcome(outcome)

    def _show(self, view: FlowView) -> None:
        self._shown_step_id = view.step_id
        self._surface.render_prompt(view)
