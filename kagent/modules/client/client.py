import logging
from typing import Any, Dict, List, Optional

import httpx

from kagent.errors import KagentError, NotFoundError
from kagent.modules.sse import DEFAULT_MAX_LINE_BYTES, EventStream, stream_sse_response

from .types import (
    APIResponse,
    CreateRunRequest,
    CreateRunResult,
    CreateSession,
    ModelInfo,
    ProviderModels,
    Session,
    SessionRuns,
)

logger = logging.getLogger("kagent.client")


class APIError(KagentError):
    """The autogen API answered with an error status or a failed envelope."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AutogenClient:
    """
    Async client for the autogen studio REST API.

    Responses arrive wrapped in {"status", "message", "data"}; the methods
    return the unwrapped data parsed into the models from .types.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ):
        """
        Initialize client.

        Args:
            base_url: API root, e.g. http://autogen:8081/api
            http_client: Preconfigured client (tests inject a mock transport)
            timeout: Request timeout for non-streaming calls in seconds
            max_line_bytes: Longest SSE line accepted from streaming calls
        """
        self.base_url = base_url.rstrip("/")
        self.max_line_bytes = max_line_bytes
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config) -> "AutogenClient":
        base_url = config.get("autogen_api_url")
        if not base_url:
            raise ValueError("autogen_api_url is not configured")
        return cls(base_url, max_line_bytes=config.get("sse_max_line_bytes"))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AutogenClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _raise_for_status(response: httpx.Response, body: str) -> None:
        if response.status_code == 404:
            raise NotFoundError(f"{response.request.url} not found")
        if response.status_code >= 400:
            raise APIError(
                f"Request to {response.request.url} failed with status "
                f"{response.status_code}: {body}",
                status_code=response.status_code,
            )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and unwrap the API envelope."""
        response = await self._client.request(method, self._url(path), **kwargs)
        self._raise_for_status(response, response.text)

        envelope = APIResponse.model_validate(response.json())
        if not envelope.status:
            raise APIError(envelope.message or "API returned an unsuccessful status")
        return envelope.data

    # Sessions

    async def list_sessions(self, user_id: str) -> List[Session]:
        data = await self._request("GET", "/sessions/", params={"user_id": user_id})
        return [Session.model_validate(item) for item in data or []]

    async def get_session(self, session_id: int, user_id: str) -> Session:
        data = await self._request(
            "GET", f"/sessions/{session_id}", params={"user_id": user_id}
        )
        if data is None:
            raise NotFoundError(f"Session {session_id} not found")
        return Session.model_validate(data)

    async def create_session(self, request: CreateSession) -> Session:
        data = await self._request("POST", "/sessions/", json=request.model_dump())
        return Session.model_validate(data)

    async def delete_session(self, session_id: int, user_id: str) -> None:
        await self._request("DELETE", f"/sessions/{session_id}", params={"user_id": user_id})

    # Runs

    async def create_run(self, request: CreateRunRequest) -> CreateRunResult:
        data = await self._request("POST", "/runs/", json=request.model_dump())
        return CreateRunResult.model_validate(data)

    async def list_session_runs(self, session_id: int, user_id: str) -> SessionRuns:
        data = await self._request(
            "GET", f"/sessions/{session_id}/runs/", params={"user_id": user_id}
        )
        return SessionRuns.model_validate(data or {})

    # Models

    async def list_supported_models(self) -> ProviderModels:
        data = await self._request("GET", "/models")
        return {
            provider: [ModelInfo.model_validate(model) for model in models]
            for provider, models in (data or {}).items()
        }

    # Streaming

    async def invoke_session_stream(
        self, session_id: int, user_id: str, task: Dict[str, Any]
    ) -> EventStream:
        """
        Run a task in a session and stream its events.

        The returned EventStream owns the HTTP response; it is closed when the
        stream ends or when the caller closes the EventStream.
        """
        request = self._client.build_request(
            "POST",
            self._url(f"/sessions/{session_id}/invoke/stream"),
            params={"user_id": user_id},
            json=task,
            headers={"Accept": "text/event-stream"},
            timeout=httpx.Timeout(None),
        )
        response = await self._client.send(request, stream=True)

        if response.status_code >= 400:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
            self._raise_for_status(response, body)

        logger.info(f"Streaming events for session {session_id}")
        return stream_sse_response(response, max_line_bytes=self.max_line_bytes)
