from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from application.outcome import SubmissionOutcome
from domain.flow_state import FlowStatus


@dataclass(frozen=True)
class FlowView:
    """What a presentation surface needs to draw the current step."""
    session_id: str
    flow_id: str
    step_id: str
    kind: str
    prompt: str
    status: FlowStatus
    options: Tuple[str, ...] = ()
    placeholder: str = ""
    selection: Tuple[str, ...] = ()
    current_answer: Optional[Any] = None
    options_loading: bool = False
    allow_custom: bool = False
    failure_reason: Optional[str] = None
    progress: float = 0.0


@dataclass(frozen=True)
class ArchivedRun:
    """A finished flow whose ledger is kept read-only after a follow-up chain."""
    flow_id: str
    snapshot: Tuple[Tuple[str, Any], ...]
    outcome: SubmissionOutcome
