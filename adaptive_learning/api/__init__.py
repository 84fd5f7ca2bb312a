"""
HTTP API

FastAPI router, request models, per-user orchestrator registry and the
domain error handlers.
"""

from adaptive_learning.api.router import router
from adaptive_learning.api.dependencies import OrchestratorRegistry, get_orchestrator, get_registry
from adaptive_learning.api.handlers import APIResponse, register_exception_handlers

__all__ = [
    'router', 'OrchestratorRegistry', 'get_orchestrator', 'get_registry',
    'APIResponse', 'register_exception_handlers',
]
