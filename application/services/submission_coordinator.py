from __future__ import annotations

import time
from typing import Any, List, Mapping, Optional, Tuple

from application.outcome import FatalFailure, SubmissionOutcome, outcome_kind
from application.ports.backend_gateway import BackendGatewayPort, HttpReply
from application.ports.logger import LoggerPort
from application.services.payload_builder import PayloadBuilder, PayloadError
from application.services.redactor import mask_payload
from application.services.response_classifier import ResponseClassifier
from domain.flow import FlowDefinition
from domain.session import SessionContext


class SubmissionCoordinator:
    """
    Performs the terminal gateway call for a flow and maps the raw reply to a
    SubmissionOutcome. Runs on the scheduler, never on the caller's thread.
    """

    def __init__(
        self,
        gateway: BackendGatewayPort,
        builder: Optional[PayloadBuilder] = None,
        classifier: Optional[ResponseClassifier] = None,
    ):
        self._gateway = gateway
        self._builder = builder or PayloadBuilder()
        self._classifier = classifier or ResponseClassifier()

    def submit(
        self,
        definition: FlowDefinition,
        snapshot: List[Tuple[str, Any]],
        session: SessionContext,
        prompts: Mapping[str, str],
        logger: LoggerPort,
    ) -> SubmissionOutcome:
        spec = definition.submission
        try:
            payload = self._builder.build(spec, snapshot, session.owner_key.value, prompts, session.seed)
        except PayloadError as exc:
            logger.error("submission.payload_invalid", resource=spec.resource, error=str(exc))
            return FatalFailure(str(exc))

        logger.info("submission.start", resource=spec.resource, payload=mask_payload(payload))
        t0 = time.perf_counter()

        reply = self._gateway.create_resource(spec.resource, payload)
        outcome = self._classifier.classify(reply, spec)

        if self._classifier.is_unparsed_success(reply):
            logger.warning(
                "submission.unparsed_success",
                resource=spec.resource,
                status=reply.status if isinstance(reply, HttpReply) else None,
            )

        logger.info(
            "submission.end",
            resource=spec.resource,
            outcome=outcome_kind(outcome),
            status=reply.status if isinstance(reply, HttpReply) else None,
            elapsed_ms=int((time.perf_counter() - t0) * 1000),
        )
        return outcome
