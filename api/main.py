"""FastAPI application - conversational flow sessions over HTTP"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Query, status
from pydantic import BaseModel, Field

from application.engine.flow_interpreter import FlowInterpreter
from application.engine.flow_view import ArchivedRun, FlowView
from application.outcome import AnswerIgnored, SubmissionOutcome, outcome_kind
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.entry_router import EntryRouter
from application.services.flow_deps import FlowDeps
from application.services.redactor import mask_value
from domain.exceptions import FlowDefinitionError, FlowStateError, ValidationError
from domain.ids import FlowId, OwnerKey
from domain.session import SessionContext
from domain.validation import Rejected
from infrastructure.config.settings import Settings
from infrastructure.flows.catalog import DirectoryFlowCatalog
from infrastructure.gateway.base_url_resolver import BaseUrlResolver
from infrastructure.gateway.http_backend_gateway import HttpBackendGateway
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.flow_log_logger import FlowLogLogger
from infrastructure.scheduling.thread_pool_scheduler import ThreadPoolScheduler
from infrastructure.session.in_memory_flow_log_store import InMemoryFlowLogStore
from infrastructure.session.in_memory_session_repository import InMemorySessionRepository


class EntryRequest(BaseModel):
    phone_number: str = Field(description="User's mobile number, any formatting")


class EntryResponse(BaseModel):
    owner_key: str = Field(description="Normalised 10-digit mobile number")
    status: str = Field(description="Onboarding status reported by the backend")
    onboarded: bool = Field(description="True when no flow is needed")
    flow_id: Optional[str] = Field(default=None, description="Flow to start, if any")
    seed: Dict[str, Any] = Field(default_factory=dict, description="Seed for that flow")


class StartSessionRequest(BaseModel):
    phone_number: str = Field(description="Owner of the session")
    seed: Dict[str, Any] = Field(default_factory=dict, description="Out-of-band seed values")
    seed_answers: Dict[str, Any] = Field(default_factory=dict, description="Pre-answered steps")
    initial_step_id: Optional[str] = Field(default=None, description="Start somewhere other than step one")


class AnswerRequest(BaseModel):
    value: Any = Field(default=None, description="Raw user input")
    step_id: Optional[str] = Field(default=None, description="Step the user was answering")


class ToggleRequest(BaseModel):
    option: str


class OutcomeResponse(BaseModel):
    kind: str
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    next_flow_id: Optional[str] = None


class ArchivedRunResponse(BaseModel):
    flow_id: str
    answers: List[List[Any]]
    outcome: OutcomeResponse


class SessionResponse(BaseModel):
    session_id: str
    flow_id: str
    step_id: str
    kind: str
    prompt: str
    status: str
    options: List[str] = Field(default_factory=list)
    placeholder: str = ""
    selection: List[str] = Field(default_factory=list)
    options_loading: bool = False
    allow_custom: bool = False
    failure_reason: Optional[str] = None
    progress: float = 0.0
    last_outcome: Optional[OutcomeResponse] = None
    history: List[ArchivedRunResponse] = Field(default_factory=list)


class AnswerResponse(BaseModel):
    accepted: bool = Field(description="Input passed validation: an answer was recorded or an option was toggled")
    ignored: bool = Field(default=False, description="Input was dropped (stale step, double tap)")
    message: Optional[str] = Field(default=None, description="Rejection message or ignore reason")
    display: Optional[str] = Field(default=None, description="Formatted echo of the accepted answer")
    session: SessionResponse


class FlowLogEntryResponse(BaseModel):
    timestamp: datetime = Field(description="Log timestamp")
    level: str = Field(description="Log level")
    event: str = Field(description="Log event name")
    fields: Dict[str, Any] = Field(description="Log payload")


app = FastAPI(
    title="FinFlow",
    description="Conversational step-flow engine for personal-finance onboarding and goals",
    version="1.0.0",
)

SETTINGS = Settings.from_env()
CATALOG = DirectoryFlowCatalog(SETTINGS.flows_dir)
SESSIONS = InMemorySessionRepository()
FLOW_LOG_STORE = InMemoryFlowLogStore()
SCHEDULER = ThreadPoolScheduler(max_workers=SETTINGS.submit_workers)
HTTP_CLIENT = RequestsSessionHttpClient(timeout_sec=SETTINGS.http_timeout_sec)
CONSOLE = ConsoleLogger(min_level=SETTINGS.log_level.lower())
GATEWAY = HttpBackendGateway(HTTP_CLIENT, BaseUrlResolver(SETTINGS.api_base_url), CONSOLE)
MAX_WAIT_SEC = 30


@app.get("/")
def read_root():
    """Health check"""
    return {
        "status": "ok",
        "service": "finflow",
        "flows": CATALOG.list_ids(),
        "pending_tasks": SCHEDULER.pending_count(),
    }


def _build_logger(session_id: str) -> CompositeLogger:
    return CompositeLogger(
        [
            CONSOLE,
            FlowLogLogger(session_id=session_id, log_store=FLOW_LOG_STORE),
        ]
    )


def _build_deps(session_id: str) -> FlowDeps:
    return FlowDeps(
        gateway=GATEWAY,
        scheduler=SCHEDULER,
        catalog=CATALOG,
        logger=_build_logger(session_id),
    )


def _get_session(session_id: str) -> FlowInterpreter:
    interpreter = SESSIONS.get(session_id)
    if interpreter is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return interpreter


def _wait(interpreter: FlowInterpreter, wait_sec: Optional[int]) -> None:
    if wait_sec is None:
        return
    if wait_sec > MAX_WAIT_SEC:
        raise HTTPException(status_code=400, detail=f"wait_sec must be <= {MAX_WAIT_SEC}")
    interpreter.wait(wait_sec)


def _outcome_response(outcome: Optional[SubmissionOutcome]) -> Optional[OutcomeResponse]:
    if outcome is None:
        return None
    return OutcomeResponse(
        kind=outcome_kind(outcome),
        message=getattr(outcome, "message", None),
        payload=getattr(outcome, "payload", None),
        next_flow_id=getattr(outcome, "next_flow_id", None),
    )


def _archived_response(run: ArchivedRun) -> ArchivedRunResponse:
    return ArchivedRunResponse(
        flow_id=run.flow_id,
        answers=[[step_id, mask_value(step_id, value)] for step_id, value in run.snapshot],
        outcome=_outcome_response(run.outcome),
    )


def _session_response(interpreter: FlowInterpreter, view: Optional[FlowView] = None) -> SessionResponse:
    view = view or interpreter.view()
    return SessionResponse(
        session_id=view.session_id,
        flow_id=view.flow_id,
        step_id=view.step_id,
        kind=view.kind,
        prompt=view.prompt,
        status=view.status.value,
        options=list(view.options),
        placeholder=view.placeholder,
        selection=list(view.selection),
        options_loading=view.options_loading,
        allow_custom=view.allow_custom,
        failure_reason=view.failure_reason,
        progress=view.progress,
        last_outcome=_outcome_response(interpreter.last_outcome),
        history=[_archived_response(run) for run in interpreter.history()],
    )


def _answer_response(interpreter: FlowInterpreter, outcome: Any) -> AnswerResponse:
    session = _session_response(interpreter)
    if isinstance(outcome, Rejected):
        return AnswerResponse(accepted=False, message=outcome.message, session=session)
    if isinstance(outcome, AnswerIgnored):
        return AnswerResponse(accepted=False, ignored=True, message=outcome.reason, session=session)
    return AnswerResponse(accepted=True, display=outcome.display, session=session)


@app.post("/entry", response_model=EntryResponse)
def route_entry(request: EntryRequest = Body(...)) -> EntryResponse:
    """Normalise the phone number and decide which flow, if any, the user starts in."""
    router = EntryRouter(GATEWAY, CONSOLE)
    try:
        decision = router.route(request.phone_number)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EntryResponse(
        owner_key=decision.owner_key.value,
        status=decision.status,
        onboarded=decision.onboarded,
        flow_id=decision.flow_id,
        seed=decision.seed,
    )


@app.post(
    "/flows/{flow_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_session(flow_id: str, request: StartSessionRequest = Body(...)) -> SessionResponse:
    try:
        FlowId(flow_id)
        owner_key = OwnerKey.from_phone(request.phone_number)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        definition = CATALOG.get(flow_id)
    except FlowDefinitionError as e:
        raise HTTPException(status_code=404, detail=str(e))

    session_id = uuid4().hex
    try:
        interpreter = FlowInterpreter(
            definition,
            SessionContext(owner_key=owner_key, seed=dict(request.seed)),
            _build_deps(session_id),
            session_id=session_id,
        )
        view = interpreter.start(request.initial_step_id, request.seed_answers or None)
    except FlowDefinitionError as e:
        FLOW_LOG_STORE.discard(session_id)
        raise HTTPException(status_code=400, detail=str(e))

    SESSIONS.add(interpreter)
    return _session_response(interpreter, view)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    wait_sec: Optional[int] = Query(default=None, ge=0),
) -> SessionResponse:
    interpreter = _get_session(session_id)
    _wait(interpreter, wait_sec)
    return _session_response(interpreter)


@app.post("/sessions/{session_id}/answers", response_model=AnswerResponse)
def submit_answer(
    session_id: str,
    request: AnswerRequest = Body(...),
    wait_sec: Optional[int] = Query(default=None, ge=0),
) -> AnswerResponse:
    interpreter = _get_session(session_id)
    outcome = interpreter.submit_answer(request.value, step_id=request.step_id)
    _wait(interpreter, wait_sec)
    return _answer_response(interpreter, outcome)


@app.post("/sessions/{session_id}/toggle", response_model=AnswerResponse)
def toggle_option(session_id: str, request: ToggleRequest = Body(...)) -> AnswerResponse:
    interpreter = _get_session(session_id)
    try:
        outcome = interpreter.toggle_option(request.option)
    except FlowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _answer_response(interpreter, outcome)


@app.post("/sessions/{session_id}/confirm", response_model=AnswerResponse)
def confirm_selection(
    session_id: str,
    wait_sec: Optional[int] = Query(default=None, ge=0),
) -> AnswerResponse:
    interpreter = _get_session(session_id)
    try:
        outcome = interpreter.confirm_selection()
    except FlowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    _wait(interpreter, wait_sec)
    return _answer_response(interpreter, outcome)


@app.post("/sessions/{session_id}/retry", response_model=SessionResponse)
def retry_submission(
    session_id: str,
    wait_sec: Optional[int] = Query(default=None, ge=0),
) -> SessionResponse:
    interpreter = _get_session(session_id)
    try:
        interpreter.retry()
    except FlowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    _wait(interpreter, wait_sec)
    return _session_response(interpreter)


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def abandon_session(session_id: str) -> None:
    interpreter = _get_session(session_id)
    interpreter.abandon()
    SESSIONS.remove(session_id)
    FLOW_LOG_STORE.discard(session_id)


@app.get("/sessions/{session_id}/logs", response_model=List[FlowLogEntryResponse])
def get_session_logs(session_id: str) -> List[FlowLogEntryResponse]:
    _get_session(session_id)
    return [
        FlowLogEntryResponse(
            timestamp=entry.timestamp,
            level=entry.level,
            event=entry.event,
            fields=entry.fields,
        )
        for entry in FLOW_LOG_STORE.list(session_id)
    ]
