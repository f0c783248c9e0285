"""
ModelConfig Module - Black Box Interface

Purpose: CRUD HTTP surface for ModelConfig objects and their API key Secrets
Interface: router (FastAPI APIRouter mounted at /api/modelconfigs)
Hidden: Provider parameter copying, secret lifecycle, error mapping

Reads the resource store from app.state.store.
"""

from .models import (
    CreateModelConfigRequest,
    ModelConfig,
    ModelConfigResponse,
    ModelProvider,
    UpdateModelConfigRequest,
)
from .router import get_store, router

__all__ = [
    "router",
    "get_store",
    "CreateModelConfigRequest",
    "UpdateModelConfigRequest",
    "ModelConfig",
    "ModelConfigResponse",
    "ModelProvider",
]
