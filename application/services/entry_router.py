from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from application.ports.backend_gateway import BackendGatewayPort, HttpReply
from application.ports.logger import LoggerPort
from domain.ids import OwnerKey

ONBOARDING_FLOW_ID = "onboarding"

STATUS_NOT_ONBOARDED = "User Not Onboarded"
STATUS_BASIC = "Basic"
STATUS_RISK = "Risk"


@dataclass(frozen=True)
class EntryDecision:
    owner_key: OwnerKey
    flow_id: Optional[str]
    seed: Dict[str, Any] = field(default_factory=dict)
    status: str = ""

    @property
    def onboarded(self) -> bool:
        return self.flow_id is None


class EntryRouter:
    """
    Decides where a user lands after entering their phone number.

    "Basic" users already gave their profile, so onboarding resumes at the
    risk questions; "Risk" users are done. Anything else, including a
    failed status check, starts onboarding from the top.
    """

    def __init__(self, gateway: BackendGatewayPort, logger: LoggerPort, onboarding_flow_id: str = ONBOARDING_FLOW_ID):
        self._gateway = gateway
        self._logger = logger
        self._flow_id = onboarding_flow_id

    def route(self, raw_phone: str) -> EntryDecision:
        owner_key = OwnerKey.from_phone(raw_phone)
        status = self._status(owner_key)

        if status == STATUS_RISK:
            decision = EntryDecision(owner_key, None, {}, status)
        elif status == STATUS_BASIC:
            decision = EntryDecision(owner_key, self._flow_id, {"start_from": "risk"}, status)
        else:
            decision = EntryDecision(owner_key, self._flow_id, {}, status)

        self._logger.info(
            "entry.routed",
            status=status,
            flow_id=decision.flow_id,
            seed_keys=sorted(decision.seed.keys()),
        )
        return decision

    def _status(self, owner_key: OwnerKey) -> str:
        reply = self._gateway.check_onboarding_status(owner_key.value)
        if not isinstance(reply, HttpReply):
            self._logger.warning("entry.status_unavailable", error=getattr(reply, "message", ""))
            return ""
        if not reply.ok or not isinstance(reply.body, dict):
            self._logger.warning("entry.status_unavailable", status=reply.status)
            return ""
        return str(reply.body.get("result") or "")
