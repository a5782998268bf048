from __future__ import annotations

from threading import Lock
from typing import Dict, List

from application.ports.flow_log_store import FlowLogStorePort
from domain.flow_log import FlowLogEntry


class InMemoryFlowLogStore(FlowLogStorePort):
    def __init__(self) -> None:
        self._logs: Dict[str, List[FlowLogEntry]] = {}
        self._lock = Lock()

    def append(self, session_id: str, entry: FlowLogEntry) -> None:
        with self._lock:
            self._logs.setdefault(session_id, []).append(entry)

    def list(self, session_id: str) -> List[FlowLogEntry]:
        with self._lock:
            return list(self._logs.get(session_id, []))

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._logs.pop(session_id, None)
