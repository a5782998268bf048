# infrastructure/flows/catalog.py
from __future__ import annotations

from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from application.ports.flow_catalog import FlowCatalogPort
from domain.exceptions import FlowDefinitionError
from domain.flow import FlowDefinition
from infrastructure.flows.file_finder import FlowFileFinder
from infrastructure.flows.loader_registry import FlowLoaderRegistry


class DirectoryFlowCatalog(FlowCatalogPort):
    """Flow definitions read from a directory tree, loaded once per id."""

    def __init__(self, base_dir: Path, registry: Optional[FlowLoaderRegistry] = None):
        self._finder = FlowFileFinder(Path(base_dir))
        self._registry = registry or FlowLoaderRegistry()
        self._cache: Dict[str, FlowDefinition] = {}
        self._lock = Lock()

    def get(self, flow_id: str) -> FlowDefinition:
        with self._lock:
            cached = self._cache.get(flow_id)
        if cached is not None:
            return cached

        path = self._finder.find_by_id(flow_id)
        if path is None:
            raise FlowDefinitionError(f"Flow not found: {flow_id}")
        definition = self._registry.load(path)
        if definition.id != flow_id:
            raise FlowDefinitionError(f"Flow file {path.name} declares id {definition.id!r}, expected {flow_id!r}")

        with self._lock:
            self._cache[flow_id] = definition
        return definition

    def list_ids(self) -> List[str]:
        return self._finder.list_ids()


class InMemoryFlowCatalog(FlowCatalogPort):
    def __init__(self, definitions: List[FlowDefinition]):
        self._definitions = {d.id: d for d in definitions}

    def get(self, flow_id: str) -> FlowDefinition:
        definition = self._definitions.get(flow_id)
        if definition is None:
            raise FlowDefinitionError(f"Flow not found: {flow_id}")
        return definition

    def list_ids(self) -> List[str]:
        return sorted(self._definitions)
