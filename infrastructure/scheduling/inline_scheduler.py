from __future__ import annotations

from concurrent.futures import Future
from typing import Callable, TypeVar

from application.ports.submission_scheduler import SubmissionSchedulerPort

T = TypeVar("T")


class InlineScheduler(SubmissionSchedulerPort):
    """Runs each task on the caller's thread and hands back an already-completed Future."""

    def submit(self, task: Callable[[], T]) -> "Future[T]":
        future: Future = Future()
        try:
            future.set_result(task())
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True) -> None:
        return None
