from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Callable, TypeVar

T = TypeVar("T")


class SubmissionSchedulerPort(ABC):
    @abstractmethod
    def submit(self, task: Callable[[], T]) -> "Future[T]":
        ...

    @abstractmethod
    def shutdown(self, wait: bool = True) -> None:
        ...
