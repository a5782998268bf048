# infrastructure/flows/yaml_loader.py
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from infrastructure.flows.base_loader import FlowLoaderBase, FlowLoadError


class YamlFlowLoader(FlowLoaderBase):
    """Loads a FlowDefinition from a YAML file."""

    def _load_file(self, path: Path) -> Any:
        try:
            with path.open("r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FlowLoadError(f"Invalid YAML in {path}: {e}") from e
