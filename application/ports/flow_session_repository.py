from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from application.engine.flow_interpreter import FlowInterpreter


class FlowSessionRepositoryPort(ABC):
    @abstractmethod
    def add(self, interpreter: "FlowInterpreter") -> None:
        """Raises FlowStateError if the session id is already taken."""
        ...

    @abstractmethod
    def get(self, session_id: str) -> Optional["FlowInterpreter"]:
        ...

    @abstractmethod
    def remove(self, session_id: str) -> Optional["FlowInterpreter"]:
        ...

    @abstractmethod
    def list_ids(self) -> List[str]:
        ...
