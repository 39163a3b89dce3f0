"""FastAPI dependencies - resolved from the DI container."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from autoflow.api.container import get_container
from autoflow.application.flow.use_case import FlowUseCase
from autoflow.domain.ports.config import AppConfig
from autoflow.infrastructure.persistence.autorun_registry import AutorunRegistry

limiter = Limiter(key_func=get_remote_address)


def get_config() -> AppConfig:
    """Config of the active container."""
    return get_container().config


def get_flow_use_case() -> FlowUseCase:
    """Flow commands bound to the shared runner and embedding index."""
    return get_container().flow_use_case


def get_autorun_registry() -> AutorunRegistry:
    return get_container().autorun_registry
