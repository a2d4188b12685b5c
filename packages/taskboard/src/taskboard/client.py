"""HTTP client for the remote process/task store."""

import asyncio
from typing import Any

import httpx
import structlog

from taskboard.config import get_settings
from taskboard.models import Comment, Process, Task, TaskState

logger = structlog.get_logger(__name__)


class StoreAPIError(Exception):
    """Base exception for task store errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(StoreAPIError):
    """The store rejected the access token."""

    pass


class NotFoundError(StoreAPIError):
    """The requested process or task does not exist."""

    pass


class RateLimitError(StoreAPIError):
    """Rate limit exceeded."""

    pass


class ProcessStoreClient:
    """Async client for the task store, authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.store_api_url).rstrip("/")
        self._token = token or settings.store_api_token.get_secret_value()
        self._timeout = timeout if timeout is not None else settings.store_timeout
        self._max_retries = max_retries if max_retries is not None else settings.store_max_retries

        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ProcessStoreClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry_count: int = 0,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make an authenticated request with retry on transport errors."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                logger.debug(
                    "store_request_retry", method=method, path=path, attempt=retry_count + 1
                )
                await asyncio.sleep(2**retry_count)
                return await self._request(method, path, params, json, retry_count + 1)
            raise StoreAPIError(f"Request failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError("Invalid or expired token", status_code=401)

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {path}", status_code=404)

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise RateLimitError(
                f"Rate limited, retry after {retry_after}s",
                status_code=429,
                details={"retry_after": retry_after},
            )

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            raise StoreAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        return response.json() if response.content else {}

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make POST request."""
        return await self._request("POST", path, params=params, json=json)

    async def patch(
        self, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make PATCH request."""
        return await self._request("PATCH", path, json=json)

    async def delete(self, path: str) -> dict[str, Any] | list[dict[str, Any]]:
        """Make DELETE request."""
        return await self._request("DELETE", path)

    @staticmethod
    def _extract_items(result: Any) -> list[dict[str, Any]]:
        """Return list of items from a list or paged response."""
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            items = result.get("items")
            if isinstance(items, list):
                return items
        return []

    # === Process Endpoints ===

    async def get_process_with_tasks(self, process_id: str) -> Process | None:
        """Get a process with its tasks embedded."""
        try:
            result = await self.get(f"/api/v1/processes/{process_id}", params={"include": "tasks"})
        except NotFoundError:
            return None
        if not isinstance(result, dict) or not result:
            return None
        return Process.from_dict(result)

    async def update_process(self, process_id: str, fields: dict[str, Any]) -> None:
        """Patch process fields."""
        await self.patch(f"/api/v1/processes/{process_id}", json=fields)

    # === Task Endpoints ===

    async def list_tasks_for_process(self, process_id: str) -> list[Task]:
        """List all tasks of a process."""
        result = await self.get(f"/api/v1/processes/{process_id}/tasks")
        return [Task.from_dict(item) for item in self._extract_items(result)]

    async def list_overdue_tasks(self, client_id: str | None = None) -> list[Task]:
        """List unfinished tasks past their due date, optionally for one client."""
        params = {"client_id": client_id} if client_id else None
        result = await self.get("/api/v1/tasks/overdue", params=params)
        return [Task.from_dict(item) for item in self._extract_items(result)]

    async def create_task(self, data: dict[str, Any]) -> str:
        """Create a task and return its id."""
        result = await self.post("/api/v1/tasks/", json=data)
        task_id = None
        if isinstance(result, dict):
            task_id = result.get("_id") or result.get("id")
        if not task_id:
            raise StoreAPIError("Create task response has no id", details=result)
        return str(task_id)

    async def move_task(self, task_id: str, state: TaskState, order: float) -> None:
        """Persist a task's column and order key."""
        await self.post(
            f"/api/v1/tasks/{task_id}/move",
            json={"nuevoEstado": state.value, "nuevoOrden": order},
        )

    async def reorder_tasks(self, orders: dict[str, float]) -> None:
        """Persist order keys for several tasks."""
        await self.post(
            "/api/v1/tasks/reorder",
            json={"items": [{"id": task_id, "orden": order} for task_id, order in orders.items()]},
        )

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        """Patch task fields."""
        await self.patch(f"/api/v1/tasks/{task_id}", json=fields)

    async def delete_task(self, task_id: str) -> None:
        """Delete a task and its comments."""
        await self.delete(f"/api/v1/tasks/{task_id}")

    async def toggle_checklist_item(self, task_id: str, index: int) -> None:
        """Flip one checklist item."""
        await self.post(f"/api/v1/tasks/{task_id}/checklist/{index}/toggle")

    # === Comment Endpoints ===

    async def list_comments(self, task_id: str) -> list[Comment]:
        """List a task's comments."""
        result = await self.get(f"/api/v1/tasks/{task_id}/comments")
        return [Comment.from_dict(item) for item in self._extract_items(result)]

    async def add_comment(self, task_id: str, text: str) -> None:
        """Add a plain comment to a task."""
        await self.post(
            f"/api/v1/tasks/{task_id}/comments",
            json={"contenido": text, "tipo": "comentario"},
        )
