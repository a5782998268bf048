from __future__ import annotations

from typing import Callable, List, Optional, Tuple

from application.services.prompt_renderer import PromptRenderer, RenderSources

# Two-character operators first so ">=" is not split on ">".
_OPERATORS: List[Tuple[str, Callable[[str, str], bool]]] = [
    ("==", lambda a, b: a == b),
    ("!=", lambda a, b: a != b),
    (">=", lambda a, b: float(a) >= float(b)),
    ("<=", lambda a, b: float(a) <= float(b)),
    (">", lambda a, b: float(a) > float(b)),
    ("<", lambda a, b: float(a) < float(b)),
]


def _split_on_operator(expr: str) -> Optional[Tuple[str, Callable[[str, str], bool], str]]:
    """Leftmost operator outside ``${...}`` placeholders, with both sides still unrendered."""
    i = 0
    while i < len(expr):
        if expr.startswith("${", i):
            close = expr.find("}", i + 2)
            if close == -1:
                return None
            i = close + 1
            continue
        for op, compare in _OPERATORS:
            if expr.startswith(op, i):
                return expr[:i], compare, expr[i + len(op):]
        i += 1
    return None


class ConditionEvaluator:
    """
    Evaluates ``next`` rule conditions such as ``${seed.start_from}==risk``
    or ``${answers.target_amount}>=100000``.
    Supports basic comparisons: ==, !=, >=, <=, >, <

    The operator is located before placeholders are filled in, so an answer
    that itself contains ``==`` or ``<`` is compared as a plain value.
    """

    def __init__(self, renderer: PromptRenderer | None = None):
        self._renderer = renderer or PromptRenderer()

    def evaluate(self, expr: str, src: RenderSources) -> bool:
        split = _split_on_operator(expr)
        if split is None:
            # If no operator, evaluate as boolean
            resolved = self._renderer.render(expr, src)
            return bool(resolved and resolved.strip().lower() not in ("false", "0", "none"))

        left, compare, right = split
        try:
            return compare(
                self._renderer.render(left, src).strip(),
                self._renderer.render(right, src).strip(),
            )
        except (ValueError, TypeError):
            return False
