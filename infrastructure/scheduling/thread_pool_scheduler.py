from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable, Set, TypeVar

from application.ports.submission_scheduler import SubmissionSchedulerPort

T = TypeVar("T")


class ThreadPoolScheduler(SubmissionSchedulerPort):
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="finflow")
        self._lock = Lock()
        self._futures: Set[Future] = set()

    def submit(self, task: Callable[[], T]) -> "Future[T]":
        with self._lock:
            future = self._executor.submit(task)
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def pending_count(self) -> int:
        with self._lock:
            return len(self._futures)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)
