from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from application.outcome import SubmissionOutcome

if TYPE_CHECKING:
    from application.engine.flow_view import FlowView


class PresentationSurfacePort(ABC):
    @abstractmethod
    def render_prompt(self, view: "FlowView") -> None: ...

    @abstractmethod
    def render_rejection(self, message: str) -> None: ...

    @abstractmethod
    def render_terminal_outcome(self, outcome: SubmissionOutcome) -> None: ...
