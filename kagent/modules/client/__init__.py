"""
Client Module - Black Box Interface

Purpose: Talk to the autogen studio API that runs agent teams
Interface: AutogenClient, request/response models
Hidden: HTTP transport, response envelope unwrapping, SSE decoding

Streaming calls hand back an EventStream from the sse module.
"""

from .client import APIError, AutogenClient
from .types import (
    APIResponse,
    BaseObject,
    CreateRunRequest,
    CreateRunResult,
    CreateSession,
    ModelInfo,
    ModelsUsage,
    ProviderModels,
    Run,
    RunMessage,
    Session,
    SessionRuns,
    SseMcpServerConfig,
    StdioMcpServerConfig,
    Task,
    TaskResult,
    Team,
    TeamResult,
    Tool,
    ToolServer,
)

__all__ = [
    "APIError",
    "AutogenClient",
    "APIResponse",
    "BaseObject",
    "CreateRunRequest",
    "CreateRunResult",
    "CreateSession",
    "ModelInfo",
    "ModelsUsage",
    "ProviderModels",
    "Run",
    "RunMessage",
    "Session",
    "SessionRuns",
    "SseMcpServerConfig",
    "StdioMcpServerConfig",
    "Task",
    "TaskResult",
    "Team",
    "TeamResult",
    "Tool",
    "ToolServer",
]
