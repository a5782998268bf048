from __future__ import annotations

from typing import Any, Dict, Optional

from application.outcome import (
    FatalFailure,
    NeedsFollowUp,
    RecoverableFailure,
    SubmissionOutcome,
    Success,
)
from application.ports.backend_gateway import GatewayReply, HttpReply, TransportFailure
from domain.flow import SubmissionSpec

FAILURE_RESULTS = {"failure", "failed", "error"}
CONNECTION_MESSAGE = "Unable to connect to the server. Please check your internet connection."
GENERIC_FAILURE_MESSAGE = "Something went wrong while saving your answers."


class ResponseClassifier:
    def classify(self, reply: GatewayReply, spec: SubmissionSpec) -> SubmissionOutcome:
        if isinstance(reply, TransportFailure):
            return RecoverableFailure(CONNECTION_MESSAGE)
        if not isinstance(reply, HttpReply):
            raise TypeError(f"Unknown gateway reply: {type(reply).__name__}")

        body = reply.body if isinstance(reply.body, dict) else None

        if not reply.ok:
            return RecoverableFailure(self._message(body) or f"Server error: {reply.status}")

        if body is None:
            # 2xx with a body we can't read: the server accepted the request.
            return Success({})

        if self._is_failure(body):
            return FatalFailure(self._message(body) or GENERIC_FAILURE_MESSAGE)

        follow_up = spec.follow_up
        if follow_up is not None:
            resource_id = body.get(follow_up.id_field)
            available = body.get(follow_up.flag_field, False) if follow_up.flag_field else True
            if resource_id not in (None, "") and available:
                return NeedsFollowUp(
                    next_flow_id=follow_up.flow,
                    seed={follow_up.effective_seed_key: resource_id},
                )

        return Success(dict(body))

    def is_unparsed_success(self, reply: GatewayReply) -> bool:
        return isinstance(reply, HttpReply) and reply.ok and not isinstance(reply.body, dict)

    def _is_failure(self, body: Dict[str, Any]) -> bool:
        if body.get("success") is False:
            return True
        result = body.get("result")
        return isinstance(result, str) and result.strip().lower() in FAILURE_RESULTS

    def _message(self, body: Optional[Dict[str, Any]]) -> Optional[str]:
        if not body:
            return None
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None
