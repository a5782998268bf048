# infrastructure/flows/__init__.py
from infrastructure.flows.base_loader import FlowLoadError, FlowLoaderBase
from infrastructure.flows.json_loader import JsonFlowLoader
from infrastructure.flows.loader_registry import FlowLoaderRegistry
from infrastructure.flows.yaml_loader import YamlFlowLoader

__all__ = [
    "FlowLoadError",
    "FlowLoaderBase",
    "FlowLoaderRegistry",
    "YamlFlowLoader",
    "JsonFlowLoader",
]
