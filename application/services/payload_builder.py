from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from domain.flow import SubmissionSpec


class PayloadError(ValueError):
    pass


class PayloadBuilder:
    """
    Turns a ledger snapshot into the request body the backend expects:
    step ids are renamed to server field names, numeric fields are coerced
    to int, the owner key and any ``seed_fields`` are attached, and
    question/answer steps are grouped into
    ``{field: {"items": [{question, answer}, ...]}}``.
    """

    def build(
        self,
        spec: SubmissionSpec,
        snapshot: List[Tuple[str, Any]],
        owner_key: str,
        prompts: Mapping[str, str],
        seed: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {spec.owner_field: owner_key}
        for key in spec.seed_fields:
            if seed and key in seed:
                payload[key] = seed[key]
        question_steps = set(spec.question_items.steps) if spec.question_items else set()

        for step_id, value in snapshot:
            if step_id in question_steps:
                continue
            name = spec.fields.get(step_id, step_id)
            payload[name] = self._coerce(name, value, spec)

        if spec.question_items:
            answers = dict(snapshot)
            items = [
                {"question": prompts.get(step_id, step_id), "answer": answers[step_id]}
                for step_id in spec.question_items.steps
                if step_id in answers
            ]
            payload[spec.question_items.field] = {"items": items}

        return payload

    def _coerce(self, name: str, value: Any, spec: SubmissionSpec) -> Any:
        if isinstance(value, tuple):
            return list(value)
        if name not in spec.integer_fields:
            return value
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise PayloadError(f"Invalid {name.replace('_', ' ')}") from exc
