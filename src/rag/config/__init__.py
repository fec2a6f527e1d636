"""
Config subpackage - settings loading and pipeline wiring.
"""

from .config_loader import RagConfig, build_orchestrator, build_store, load_config

__all__ = [
    "RagConfig",
    "build_orchestrator",
    "build_store",
    "load_config",
]
