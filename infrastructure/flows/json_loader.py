# infrastructure/flows/json_loader.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from infrastructure.flows.base_loader import FlowLoaderBase, FlowLoadError


class JsonFlowLoader(FlowLoaderBase):
    def _load_file(self, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as e:
            raise FlowLoadError(f"Invalid JSON in {path}: {e}") from e
