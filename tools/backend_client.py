"""HTTP client for the remote generation task queue."""

import logging
from typing import Any, Optional

import httpx

from config.exceptions import BackendAPIError
from config.settings import Settings
from models.enums import OperationKind
from models.task import RemoteTask

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper over the task-queue REST API.

    Every response body has the shape ``{"success": bool, "data": ...}``.
    Non-2xx responses raise BackendAPIError with the server's ``error``
    message when it sent one.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "BackendClient":
        return cls(settings.backend_url, settings.request_timeout_seconds, **kwargs)

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            BackendAPIError: On transport failure or a non-2xx response.
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.error("Backend request failed: %s %s: %s", method, path, e)
            raise BackendAPIError(f"Request to {path} failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            message = None
            try:
                body = response.json()
                if isinstance(body, dict):
                    message = body.get("error")
            except ValueError:
                pass
            message = message or f"HTTP {response.status_code}: {response.reason_phrase}"
            logger.error("Backend request failed: %s %s: %s", method, path, message)
            raise BackendAPIError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise BackendAPIError(
                f"Invalid JSON from {path}", status_code=response.status_code
            ) from e

    @staticmethod
    def _data(body: Any) -> Any:
        if isinstance(body, dict):
            if body.get("success") is False:
                raise BackendAPIError(body.get("error") or "Backend reported failure")
            return body.get("data")
        return body

    # ---- Service ----

    async def health(self) -> dict:
        return await self.request("GET", "/health")

    async def info(self) -> dict:
        return await self.request("GET", "/api/info")

    # ---- Tasks ----

    async def create_task(self, task_type: str, payload: dict, priority: int = 0) -> dict:
        body = await self.request(
            "POST", "/api/tasks", json={"type": task_type, "payload": payload, "priority": priority}
        )
        return self._data(body)

    async def list_tasks(
        self,
        status: Optional[str] = None,
        task_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[RemoteTask]:
        body = await self.request(
            "GET",
            "/api/tasks",
            params={"status": status, "type": task_type, "limit": limit, "offset": offset},
        )
        return [RemoteTask.from_dict(t) for t in self._data(body) or []]

    async def get_task(self, task_id: str) -> RemoteTask:
        body = await self.request("GET", f"/api/tasks/{task_id}")
        data = self._data(body) or {}
        data.setdefault("id", task_id)
        return RemoteTask.from_dict(data)

    async def task_logs(
        self,
        task_id: str,
        level: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[dict]:
        body = await self.request(
            "GET",
            f"/api/tasks/{task_id}/logs",
            params={"level": level, "limit": limit, "offset": offset},
        )
        return self._data(body) or []

    async def cancel_task(self, task_id: str) -> str:
        body = await self.request("DELETE", f"/api/tasks/{task_id}")
        if isinstance(body, dict):
            self._data(body)
            return body.get("message", "")
        return ""

    async def task_stats(self) -> dict:
        return self._data(await self.request("GET", "/api/tasks/stats")) or {}

    async def queue_status(self) -> dict:
        return self._data(await self.request("GET", "/api/tasks/queue/status")) or {}

    async def configure_queue(self, max_concurrent: int) -> dict:
        body = await self.request(
            "POST", "/api/tasks/queue/config", json={"maxConcurrent": max_concurrent}
        )
        return self._data(body) or {}

    # ---- Generation ----

    async def submit_generation(self, kind: OperationKind, params: dict) -> str:
        """Create a generation task and return its id."""
        body = await self.request("POST", f"/api/generate/{OperationKind(kind).endpoint}", json=params)
        data = self._data(body) or {}
        task_id = data.get("taskId") or data.get("id")
        if not task_id:
            raise BackendAPIError(f"No task id returned for {OperationKind(kind).value}")
        logger.info("Submitted %s task %s (status=%s)", OperationKind(kind).value, task_id, data.get("status"))
        return str(task_id)
