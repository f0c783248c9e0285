"""
Autogen studio API data models.

These mirror the JSON shapes of the autogen studio REST API. Component
definitions are kept as raw dicts since their schema belongs to autogen.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

Component = Dict[str, Any]
TaskMessageMap = Dict[str, Any]


class BaseObject(BaseModel):
    component: Optional[Component] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user_id: str = ""
    version: Optional[str] = None
    id: Optional[int] = None


class Team(BaseObject):
    pass


class Tool(BaseObject):
    server_id: Optional[int] = None


class StdioMcpServerConfig(BaseModel):
    command: str
    args: Optional[List[str]] = None
    env: Optional[Dict[str, str]] = None


class SseMcpServerConfig(BaseModel):
    url: str
    headers: Optional[Dict[str, Any]] = None
    timeout: Optional[int] = None
    sse_read_timeout: Optional[int] = None


class ToolServer(BaseModel):
    id: Optional[int] = None
    component: Component
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user_id: Optional[str] = None
    last_connected: Optional[str] = None
    version: Optional[str] = None


class ModelsUsage(BaseModel):
    """Token counts reported by a model client."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    def add(self, other: Optional["ModelsUsage"]) -> None:
        """Accumulate another usage record in place; None is ignored."""
        if other is None:
            return
        self.prompt_tokens += other.prompt_tokens
        self.completion_tokens += other.completion_tokens

    def __str__(self) -> str:
        return f"Prompt Tokens: {self.prompt_tokens}, Completion Tokens: {self.completion_tokens}"


class RunMessage(BaseModel):
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    version: Optional[str] = None
    session_id: int
    message_meta: Dict[str, Any] = Field(default_factory=dict)
    id: int
    user_id: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    run_id: int


class CreateRunRequest(BaseModel):
    session_id: int
    user_id: str


class CreateRunResult(BaseModel):
    id: int = Field(..., alias="run_id")


class Task(BaseModel):
    source: str = ""
    content: Any = None
    message_type: str = ""


class TaskResult(BaseModel):
    messages: List[TaskMessageMap] = Field(default_factory=list)
    stop_reason: str = ""


class TeamResult(BaseModel):
    task_result: TaskResult = Field(default_factory=TaskResult)
    usage: str = ""
    duration: float = 0.0


class Run(BaseModel):
    id: int
    session_id: int
    created_at: str = ""
    status: str = ""
    task: Task = Field(default_factory=Task)
    team_result: Optional[TeamResult] = None
    messages: List[RunMessage] = Field(default_factory=list)
    error_message: Optional[str] = None


class SessionRuns(BaseModel):
    runs: List[Run] = Field(default_factory=list)


class APIResponse(BaseModel):
    """Envelope wrapping every autogen API response."""

    status: bool
    message: str = ""
    data: Any = None


class Session(BaseModel):
    id: int
    user_id: str = ""
    version: str = ""
    team_id: Optional[int] = None
    name: str = ""
    created_at: str = ""
    updated_at: str = ""


class CreateSession(BaseModel):
    user_id: str
    team_id: Optional[int] = None
    name: str


class ModelInfo(BaseModel):
    name: str
    function_calling: bool = False


# Provider name -> models it supports
ProviderModels = Dict[str, List[ModelInfo]]
