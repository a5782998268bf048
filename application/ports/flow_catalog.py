from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from domain.flow import FlowDefinition


class FlowCatalogPort(ABC):
    @abstractmethod
    def get(self, flow_id: str) -> FlowDefinition:
        """Raises FlowDefinitionError when the flow is unknown."""
        ...

    @abstractmethod
    def list_ids(self) -> List[str]:
        ...
