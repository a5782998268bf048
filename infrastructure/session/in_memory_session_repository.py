from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional

from application.engine.flow_interpreter import FlowInterpreter
from application.ports.flow_session_repository import FlowSessionRepositoryPort
from domain.exceptions import FlowStateError


class InMemorySessionRepository(FlowSessionRepositoryPort):
    def __init__(self) -> None:
        self._sessions: Dict[str, FlowInterpreter] = {}
        self._lock = Lock()

    def add(self, interpreter: FlowInterpreter) -> None:
        with self._lock:
            if interpreter.session_id in self._sessions:
                raise FlowStateError(f"Session already exists: {interpreter.session_id}")
            self._sessions[interpreter.session_id] = interpreter

    def get(self, session_id: str) -> Optional[FlowInterpreter]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[FlowInterpreter]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())
