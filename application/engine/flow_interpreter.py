from __future__ import annotations

import uuid
from concurrent.futures import Future, wait
from threading import Event, RLock
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from application.engine.flow_view import ArchivedRun, FlowView
from application.engine.next_step_resolver import NextStepResolver
from application.outcome import (
    AnswerIgnored,
    FatalFailure,
    NeedsFollowUp,
    RecoverableFailure,
    SubmissionOutcome,
    Success,
    outcome_kind,
)
from application.services.flow_deps import FlowDeps
from application.services.in_flight_guard import InFlightGuard
from application.services.option_loader import OptionLoader
from application.services.prompt_renderer import RenderSources
from application.services.redactor import mask_value
from application.services.submission_coordinator import SubmissionCoordinator
from domain.exceptions import DuplicateAnswerError, FlowDefinitionError, FlowStateError
from domain.flow import FlowDefinition
from domain.flow_state import FlowState, FlowStatus
from domain.ledger import AnswerLedger
from domain.session import SessionContext
from domain.step_store import StepDefinitionStore
from domain.steps.base import StepDescriptor, StepKind
from domain.validation import Accepted, Rejected, ValidationOutcome, toggle_selection

AnswerOutcome = Union[Accepted, Rejected, AnswerIgnored]
OutcomeListener = Callable[[SubmissionOutcome], None]

UNEXPECTED_FAILURE_MESSAGE = "Something went wrong while saving your answers. Please try again."
FOLLOW_UP_FAILURE_MESSAGE = "Your answers were saved, but the next step could not be opened."


class FlowInterpreter:
    """
    State machine for one conversational flow instance.

    IN_PROGRESS(step) --answer--> IN_PROGRESS(next) | SUBMITTING
    SUBMITTING --Success--> SUCCEEDED
    SUBMITTING --NeedsFollowUp--> IN_PROGRESS(first step of the follow-up flow)
    SUBMITTING --NeedsFollowUp, next flow missing--> FAILED
    SUBMITTING --RecoverableFailure--> AWAITING_RETRY --retry()--> SUBMITTING
    SUBMITTING --FatalFailure--> FAILED (only start() recovers)
    any --abandon()--> ABANDONED

    Submission and option fetches run on the scheduler. Their results are
    applied only if the flow instance is still the one that started them;
    after abandon() or a restart they are logged and dropped.
    """

    def __init__(
        self,
        definition: FlowDefinition,
        session: SessionContext,
        deps: FlowDeps,
        session_id: str = "",
        coordinator: Optional[SubmissionCoordinator] = None,
        option_loader: Optional[OptionLoader] = None,
    ):
        self._session_id = session_id or uuid.uuid4().hex
        self._base_deps = deps.with_logger(deps.logger.bind(session_id=self._session_id))
        self._deps = self._base_deps.with_logger(self._base_deps.logger.bind(flow_id=definition.id))
        self._check_follow_up(definition)
        self._store = StepDefinitionStore(definition)
        self._session = session
        self._coordinator = coordinator or SubmissionCoordinator(deps.gateway)
        self._options = option_loader or OptionLoader(deps.gateway, deps.renderer)
        self._resolver = NextStepResolver(deps.conditions)
        self._guard = InFlightGuard()
        self._lock = RLock()

        self._state: Optional[FlowState] = None
        self._generation = 0
        self._history: List[ArchivedRun] = []
        self._last_outcome: Optional[SubmissionOutcome] = None
        self._listeners: List[OutcomeListener] = []
        self._settled = Event()
        self._settled.set()
        self._prefetches: List[Future] = []

    # ------------------------------------------------------------------ queries

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def flow_id(self) -> str:
        return self._store.flow_id

    @property
    def status(self) -> FlowStatus:
        return self._require_state().status

    @property
    def current_step_id(self) -> str:
        return self._require_state().current_step_id

    @property
    def last_outcome(self) -> Optional[SubmissionOutcome]:
        return self._last_outcome

    @property
    def failure_reason(self) -> Optional[str]:
        return self._require_state().failure_reason

    @property
    def retry_from_step_id(self) -> Optional[str]:
        return self._require_state().retry_from_step_id

    @property
    def is_started(self) -> bool:
        return self._state is not None

    def current_step(self) -> StepDescriptor:
        with self._lock:
            return self._store.get_step(self._require_state().current_step_id)

    def snapshot(self) -> List[Tuple[str, Any]]:
        with self._lock:
            return self._require_state().ledger.snapshot()

    def selection(self) -> Tuple[str, ...]:
        with self._lock:
            return self._require_state().selection

    def history(self) -> Tuple[ArchivedRun, ...]:
        with self._lock:
            return tuple(self._history)

    def progress(self) -> float:
        with self._lock:
            state = self._require_state()
            ids = self._store.enabled_step_ids()
            if state.current_step_id not in ids or len(ids) < 2:
                return 0.0
            return ids.index(state.current_step_id) / (len(ids) - 1)

    def view(self) -> FlowView:
        with self._lock:
            state = self._require_state()
            step = self._store.get_step(state.current_step_id)
            return FlowView(
                session_id=self._session_id,
                flow_id=self.flow_id,
                step_id=step.id,
                kind=step.kind.value,
                prompt=self._deps.renderer.render(step.prompt, self._sources()),
                status=state.status,
                options=step.options,
                placeholder=step.placeholder,
                selection=state.selection,
                current_answer=state.ledger.get(step.id),
                options_loading=self._store.is_pending(step.id),
                allow_custom=step.allow_custom,
                failure_reason=state.failure_reason,
                progress=self.progress(),
            )

    def subscribe(self, listener: OutcomeListener) -> None:
        self._listeners.append(listener)

    def wait(self, timeout_sec: Optional[float] = None) -> bool:
        """Block until background work started by this instance has finished."""
        with self._lock:
            futures = list(self._prefetches)
            settled = self._settled
        _done, not_done = wait(futures, timeout=timeout_sec)
        # the submission counts as finished once its outcome has been applied
        return settled.wait(timeout_sec) and not not_done

    # -------------------------------------------------------------- transitions

    def start(
        self,
        initial_step_id: Optional[str] = None,
        seed_answers: Optional[Dict[str, Any]] = None,
    ) -> FlowView:
        with self._lock:
            self._generation += 1
            ledger = AnswerLedger()
            for step_id, value in (seed_answers or {}).items():
                if not self._store.has_step(step_id):
                    raise FlowDefinitionError(f"Seed answer for unknown step: {step_id}")
                ledger.record(step_id, value)

            step_id = initial_step_id or self._store.get_initial_step_id()
            if self._store.is_terminal(step_id):
                raise FlowDefinitionError(f"Flow cannot start on its terminal step: {step_id}")

            self._state = FlowState(
                flow_id=self.flow_id,
                current_step_id=step_id,
                ledger=ledger,
                status=FlowStatus.IN_PROGRESS,
                seed=dict(self._session.seed),
            )
            self._last_outcome = None
            self._settled = Event()
            self._settled.set()
            self._deps.logger.info(
                "flow.start",
                initial_step_id=step_id,
                seeded_steps=list((seed_answers or {}).keys()),
                seed_keys=sorted(self._session.seed.keys()),
            )
            self._prefetch_options()
            self._deps.logger.info("step.enter", step_id=step_id, kind=self._store.get_step(step_id).kind.value)
            return self.view()

    def submit_answer(self, raw_input: Any, step_id: Optional[str] = None) -> AnswerOutcome:
        """
        Validate ``raw_input`` against the current step. ``step_id``, when
        given, pins the answer to the step the user saw; an answer for any
        other step is ignored.
        """
        with self._lock:
            state = self._require_state()
            ignored = self._check_accepting(state, step_id)
            if ignored:
                return ignored
            step = self._store.get_step(state.current_step_id)
            generation = self._generation

        if step.kind == StepKind.TERMINAL:
            return self._ignore("terminal step takes no input", step.id)
        if step.kind == StepKind.CHOICE_MULTI and isinstance(raw_input, str):
            return self.toggle_option(raw_input)

        with self._guard.hold(step.id) as acquired:
            if not acquired:
                return self._ignore("answer already in flight", step.id)
            outcome = self._deps.validators.validate(step, raw_input)
            if isinstance(outcome, Rejected):
                self._deps.logger.info("answer.rejected", step_id=step.id, message=outcome.message)
                return outcome
            with self._lock:
                return self._accept(step, outcome, generation)

    def toggle_option(self, option: str) -> AnswerOutcome:
        with self._lock:
            state = self._require_state()
            ignored = self._check_accepting(state, None)
            if ignored:
                return ignored
            step = self._require_multi_step(state)
            if option not in step.options:
                return Rejected("Please pick from the options shown")

            state.selection = toggle_selection(state.selection, option)
            self._deps.logger.debug("selection.toggle", step_id=step.id, option=option, selected=list(state.selection))
            return Accepted(state.selection, ", ".join(state.selection))

    def confirm_selection(self) -> AnswerOutcome:
        with self._lock:
            state = self._require_state()
            ignored = self._check_accepting(state, None)
            if ignored:
                return ignored
            step = self._require_multi_step(state)
            with self._guard.hold(step.id) as acquired:
                if not acquired:
                    return self._ignore("answer already in flight", step.id)
                outcome = self._deps.validators.validate(step, list(state.selection))
                if isinstance(outcome, Rejected):
                    self._deps.logger.info("answer.rejected", step_id=step.id, message=outcome.message)
                    return outcome
                return self._accept(step, outcome, self._generation)

    def retry(self) -> FlowView:
        with self._lock:
            state = self._require_state()
            if state.status != FlowStatus.AWAITING_RETRY:
                raise FlowStateError(f"retry() needs {FlowStatus.AWAITING_RETRY.value}, flow is {state.status.value}")
            self._deps.logger.info("flow.retry", from_step_id=state.retry_from_step_id)
            state.failure_reason = None
            self._begin_submission(state)
            return self.view()

    def abandon(self) -> None:
        with self._lock:
            if self._state is None or self._state.status == FlowStatus.ABANDONED:
                return
            self._generation += 1
            self._deps.logger.info("flow.abandon", step_id=self._state.current_step_id, status=self._state.status.value)
            self._state.status = FlowStatus.ABANDONED

    # ---------------------------------------------------------------- internals

    def _require_state(self) -> FlowState:
        if self._state is None:
            raise FlowStateError("Flow has not been started")
        return self._state

    def _require_multi_step(self, state: FlowState) -> StepDescriptor:
        step = self._store.get_step(state.current_step_id)
        if step.kind != StepKind.CHOICE_MULTI:
            raise FlowStateError(f"Step {step.id} is not a multi-select step")
        return step

    def _check_accepting(self, state: FlowState, step_id: Optional[str]) -> Optional[AnswerIgnored]:
        if state.status != FlowStatus.IN_PROGRESS:
            return self._ignore(f"flow is {state.status.value}", state.current_step_id)
        if step_id is not None and step_id != state.current_step_id:
            return self._ignore(f"stale answer for {step_id}", state.current_step_id)
        return None

    def _ignore(self, reason: str, step_id: str) -> AnswerIgnored:
        self._deps.logger.info("answer.ignored", step_id=step_id, reason=reason)
        return AnswerIgnored(reason)

    def _accept(self, step: StepDescriptor, outcome: Accepted, generation: int) -> AnswerOutcome:
        state = self._require_state()
        if generation != self._generation or state.current_step_id != step.id:
            return self._ignore("flow moved on while validating", step.id)
        if state.status != FlowStatus.IN_PROGRESS:
            return self._ignore(f"flow is {state.status.value}", step.id)

        if step.kind.records_answer:
            try:
                state.ledger.record(step.id, outcome.value)
            except DuplicateAnswerError as e:
                self._deps.logger.error("ledger.duplicate_answer", step_id=step.id, error=str(e))
                return AnswerIgnored(str(e))

        self._deps.logger.info("answer.accepted", step_id=step.id, display=mask_value(step.id, outcome.display))
        next_id = self._next_open_step(state, step)
        self._enter(state, next_id, previous_step_id=step.id)
        return outcome

    def _next_open_step(self, state: FlowState, step: StepDescriptor) -> str:
        """Next step to show, passing over steps whose answers were seeded by start()."""
        next_id = self._resolver.resolve(self._store, step, self._sources(), self._deps.logger)
        seen = {step.id}
        while next_id in state.ledger and next_id not in seen and not self._store.is_terminal(next_id):
            seen.add(next_id)
            self._deps.logger.info("step.skipped", step_id=next_id, reason="already answered")
            next_id = self._resolver.resolve(
                self._store, self._store.get_step(next_id), self._sources(), self._deps.logger
            )
        return next_id

    def _enter(self, state: FlowState, step_id: str, previous_step_id: str) -> None:
        state.current_step_id = step_id
        state.selection = ()
        step = self._store.get_step(step_id)
        self._deps.logger.info("step.enter", step_id=step_id, kind=step.kind.value)
        if step.kind == StepKind.TERMINAL:
            state.retry_from_step_id = previous_step_id
            self._begin_submission(state)

    def _begin_submission(self, state: FlowState) -> None:
        state.status = FlowStatus.SUBMITTING
        generation = self._generation
        definition = self._store.definition
        snapshot = state.ledger.snapshot()
        session = self._session.with_seed(**state.seed)
        prompts = self._rendered_prompts()
        logger = self._deps.logger

        future = self._deps.scheduler.submit(
            lambda: self._coordinator.submit(definition, snapshot, session, prompts, logger)
        )
        settled = Event()
        self._settled = settled
        future.add_done_callback(lambda f: self._on_submission_done(generation, f, settled))

    def _on_submission_done(self, generation: int, future: Future, settled: Event) -> None:
        try:
            outcome = future.result()
        except Exception as e:
            self._deps.logger.error("submission.crashed", error=str(e), error_type=type(e).__name__)
            outcome = RecoverableFailure(UNEXPECTED_FAILURE_MESSAGE)

        try:
            with self._lock:
                state = self._state
                if generation != self._generation or state is None or state.status != FlowStatus.SUBMITTING:
                    self._deps.logger.info("submission.discarded", outcome=outcome_kind(outcome))
                    return
                self._apply_outcome(state, outcome)
        finally:
            settled.set()

        for listener in list(self._listeners):
            listener(outcome)

    def _apply_outcome(self, state: FlowState, outcome: SubmissionOutcome) -> None:
        self._last_outcome = outcome
        if isinstance(outcome, Success):
            state.status = FlowStatus.SUCCEEDED
        elif isinstance(outcome, RecoverableFailure):
            state.status = FlowStatus.AWAITING_RETRY
            state.failure_reason = outcome.message
        elif isinstance(outcome, FatalFailure):
            state.status = FlowStatus.FAILED
            state.failure_reason = outcome.message
        elif isinstance(outcome, NeedsFollowUp):
            self._chain(state, outcome)
        else:
            raise TypeError(f"Unknown submission outcome: {type(outcome).__name__}")

        self._deps.logger.info("flow.status", status=self._require_state().status.value, outcome=outcome_kind(outcome))

    def _check_follow_up(self, definition: FlowDefinition) -> None:
        """Raises FlowDefinitionError when the flow chains into one the catalog does not have."""
        follow_up = definition.submission.follow_up
        if follow_up is None:
            return
        try:
            self._deps.catalog.get(follow_up.flow)
        except FlowDefinitionError as e:
            self._deps.logger.error("flow.follow_up_missing", next_flow_id=follow_up.flow, error=str(e))
            raise

    def _chain(self, state: FlowState, outcome: NeedsFollowUp) -> None:
        # nothing is archived or replaced until the next flow is known to load
        try:
            definition = self._deps.catalog.get(outcome.next_flow_id)
            self._check_follow_up(definition)
        except FlowDefinitionError as e:
            self._deps.logger.error("flow.follow_up_failed", next_flow_id=outcome.next_flow_id, error=str(e))
            state.status = FlowStatus.FAILED
            state.failure_reason = FOLLOW_UP_FAILURE_MESSAGE
            return

        self._history.append(
            ArchivedRun(flow_id=state.flow_id, snapshot=tuple(state.ledger.snapshot()), outcome=outcome)
        )
        self._deps.logger.info("flow.follow_up", next_flow_id=definition.id, seed_keys=sorted(outcome.seed.keys()))

        self._store = StepDefinitionStore(definition)
        self._deps = self._base_deps.with_logger(self._base_deps.logger.bind(flow_id=definition.id))
        self._session = self._session.with_seed(**state.seed).with_seed(**outcome.seed)
        last_outcome = outcome
        self.start()
        self._last_outcome = last_outcome

    def _prefetch_options(self) -> None:
        self._prefetches = []
        src = self._sources()
        store = self._store
        logger = self._deps.logger
        for step in store.dynamic_steps():
            store.mark_pending(step.id)
            future = self._deps.scheduler.submit(
                lambda step=step: self._options.load(store, step, src, logger)
            )
            self._prefetches.append(future)

    def _sources(self) -> RenderSources:
        state = self._state
        return RenderSources(
            answers=state.ledger.as_dict() if state else {},
            seed=dict(state.seed) if state else dict(self._session.seed),
            session={"owner_key": self._session.owner_key.value},
        )

    def _rendered_prompts(self) -> Dict[str, str]:
        src = self._sources()
        return {
            step.id: self._deps.renderer.render(step.prompt, src)
            for step in self._store.definition.steps
        }
