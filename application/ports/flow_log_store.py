from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.flow_log import FlowLogEntry


class FlowLogStorePort(ABC):
    @abstractmethod
    def append(self, session_id: str, entry: FlowLogEntry) -> None:
        ...

    @abstractmethod
    def list(self, session_id: str) -> List[FlowLogEntry]:
        ...

    @abstractmethod
    def discard(self, session_id: str) -> None:
        ...
