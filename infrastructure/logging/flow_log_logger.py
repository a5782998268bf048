from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from application.ports.flow_log_store import FlowLogStorePort
from application.ports.logger import LoggerPort
from domain.flow_log import FlowLogEntry


@dataclass(frozen=True)
class FlowLogLogger(LoggerPort):
    """Keeps every event of one session in a FlowLogStorePort so it can be read back over the API."""
    session_id: str
    log_store: FlowLogStorePort
    bound: Dict[str, Any] = field(default_factory=dict)

    def bind(self, **fields: Any) -> "FlowLogLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return FlowLogLogger(session_id=self.session_id, log_store=self.log_store, bound=merged)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit("error", event, fields)

    def _emit(self, level: str, event: str, fields: Dict[str, Any]) -> None:
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        entry = FlowLogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            event=event,
            fields=payload,
        )
        self.log_store.append(self.session_id, entry)
