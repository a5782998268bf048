from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union


@dataclass(frozen=True)
class Success:
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NeedsFollowUp:
    next_flow_id: str
    seed: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RecoverableFailure:
    message: str


@dataclass(frozen=True)
class FatalFailure:
    message: str


SubmissionOutcome = Union[Success, NeedsFollowUp, RecoverableFailure, FatalFailure]


@dataclass(frozen=True)
class AnswerIgnored:
    """Input dropped without touching the flow (double tap, flow not accepting input)."""
    reason: str

    @property
    def ok(self) -> bool:
        return False


def outcome_kind(outcome: SubmissionOutcome) -> str:
    if isinstance(outcome, Success):
        return "success"
    if isinstance(outcome, NeedsFollowUp):
        return "needs_follow_up"
    if isinstance(outcome, RecoverableFailure):
        return "recoverable_failure"
    if isinstance(outcome, FatalFailure):
        return "fatal_failure"
    raise TypeError(f"Unknown submission outcome: {type(outcome).__name__}")
