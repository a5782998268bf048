from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from domain.exceptions import DuplicateAnswerError

AnswerValue = Any  # str | int | tuple[str, ...]


class AnswerLedger:
    """Validated answers keyed by step id, in the order they were given."""

    def __init__(self, entries: Optional[Iterable[Tuple[str, AnswerValue]]] = None):
        self._answers: Dict[str, AnswerValue] = {}
        for step_id, value in entries or []:
            self.record(step_id, value)

    def record(self, step_id: str, value: AnswerValue) -> None:
        if step_id in self._answers:
            raise DuplicateAnswerError(step_id)
        if isinstance(value, list):
            value = tuple(value)
        self._answers[step_id] = value

    def get(self, step_id: str) -> Optional[AnswerValue]:
        return self._answers.get(step_id)

    def snapshot(self) -> List[Tuple[str, AnswerValue]]:
        return list(self._answers.items())

    def as_dict(self) -> Dict[str, AnswerValue]:
        return dict(self._answers)

    def clear(self) -> None:
        self._answers.clear()

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)
