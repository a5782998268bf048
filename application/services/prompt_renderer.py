from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


class TemplateRenderError(Exception):
    pass


@dataclass(frozen=True)
class RenderSources:
    answers: Dict[str, Any] = field(default_factory=dict)
    seed: Dict[str, Any] = field(default_factory=dict)
    session: Dict[str, Any] = field(default_factory=dict)


class PromptRenderer:
    """
    Expands ${answers.xxx}, ${seed.xxx} and ${session.xxx} in prompt text
    and branching conditions.
    - dotted lookups: ${seed.goal.id}
    - list index: ${answers.goals.0}
    - multi-select answers are joined with ", " in string context
    Unknown keys render as an empty string so a prompt never breaks
    because an earlier step was skipped.
    """

    def render(self, template: str, src: RenderSources) -> str:
        if template is None:
            return ""
        if "${" not in template:
            return template

        result = ""
        i = 0
        while i < len(template):
            start = template.find("${", i)
            if start < 0:
                result += template[i:]
                break
            result += template[i:start]
            end = template.find("}", start + 2)
            if end < 0:
                raise TemplateRenderError(f"unclosed template: {template}")
            expr = template[start + 2 : end].strip()
            result += self._to_text(self.evaluate(expr, src))
            i = end + 1

        return result

    def evaluate(self, expr: str, src: RenderSources) -> Any:
        root_name, rest = self._split_root(expr)

        root = {
            "answers": src.answers,
            "seed": src.seed,
            "session": src.session,
        }.get(root_name)

        if root is None:
            raise TemplateRenderError(f"unknown root: {root_name}")

        if rest == "":
            return root

        cur: Any = root
        for part in rest.split("."):
            cur = self._resolve_part(cur, part)
        return cur

    def _split_root(self, expr: str) -> Tuple[str, str]:
        if "." in expr:
            a, b = expr.split(".", 1)
            return a, b
        return expr, ""

    def _resolve_part(self, cur: Any, part: str) -> Any:
        if part.isdigit() and isinstance(cur, (list, tuple)):
            idx = int(part)
            if idx >= len(cur):
                return ""
            return cur[idx]
        if isinstance(cur, dict):
            return cur.get(part, "")
        return ""

    def _to_text(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join("" if x is None else str(x) for x in value)
        return str(value)
