from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from domain.ledger import AnswerLedger


class FlowStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    AWAITING_RETRY = "awaiting_retry"
    ABANDONED = "abandoned"

    @property
    def is_final(self) -> bool:
        return self in (FlowStatus.SUCCEEDED, FlowStatus.FAILED, FlowStatus.ABANDONED)


@dataclass
class FlowState:
    flow_id: str
    current_step_id: str
    ledger: AnswerLedger = field(default_factory=AnswerLedger)
    status: FlowStatus = FlowStatus.IN_PROGRESS
    seed: Dict[str, Any] = field(default_factory=dict)
    failure_reason: Optional[str] = None
    retry_from_step_id: Optional[str] = None
    selection: Tuple[str, ...] = ()
