"""Adapters — bindings for the external build tools.

Public re-exports for convenient access.
"""

from capbuild.adapters.base import Adapter, ExecutionContext
from capbuild.adapters.mock import MockAdapter
from capbuild.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
