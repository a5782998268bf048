from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


class GatewayError(Exception):
    pass


@dataclass(frozen=True)
class HttpReply:
    """The server answered. ``body`` is None when the text was not JSON."""
    status: int
    body: Optional[Any]
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a response (connection error, timeout)."""
    message: str


GatewayReply = Union[HttpReply, TransportFailure]


class BackendGatewayPort(ABC):
    @abstractmethod
    def fetch_options(self, prompt_key: str) -> List[str]:
        """Raises GatewayError when suggestions can't be fetched."""
        ...

    @abstractmethod
    def create_resource(self, resource: str, payload: Dict[str, Any]) -> GatewayReply:
        ...

    @abstractmethod
    def fetch_follow_up(self, resource_id: str) -> GatewayReply:
        ...

    @abstractmethod
    def check_onboarding_status(self, owner_key: str) -> GatewayReply:
        ...
