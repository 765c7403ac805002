"""Microsoft Graph client for Microsoft To Do lists and tasks."""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from ..core.exceptions import AuthenticationError, RemoteStoreError, TodoApiError
from ..core.models import RemoteTask


GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TIMEOUT = 15.0

TokenProvider = Callable[[], str]


class TodoApiClient:
    """Thin synchronous wrapper over the Graph ``/me/todo`` endpoints.

    All task operations act on the default list, which is either passed in,
    set explicitly or resolved with :meth:`get_or_create_task_list`.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        default_list_id: Optional[str] = None,
        base_url: str = GRAPH_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.logger = logger or logging.getLogger(__name__)
        self._default_list_id = default_list_id
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TodoApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _lists_url(self) -> str:
        return f"{self.base_url}/me/todo/lists"

    def _tasks_url(self, list_id: str) -> str:
        return f"{self._lists_url()}/{list_id}/tasks"

    def _task_url(self, list_id: str, task_id: str) -> str:
        return f"{self._tasks_url(list_id)}/{task_id}"

    def _get_headers(self) -> Dict[str, str]:
        try:
            token = self.token_provider()
        except Exception as exc:
            self.logger.error("Failed to get access token: %s", exc)
            raise AuthenticationError(f"Failed to get access token: {exc}") from exc
        if not token:
            raise AuthenticationError("Access token is empty")
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = self._get_headers()
        try:
            resp = self._client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise TodoApiError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise self._api_error(method, resp)
        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise TodoApiError(f"{method} {url} returned invalid JSON", resp.status_code) from exc

    @staticmethod
    def _api_error(method: str, resp: httpx.Response) -> TodoApiError:
        code = ""
        detail = resp.reason_phrase
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            code = body["error"].get("code", "")
            detail = body["error"].get("message") or detail
        message = f"HTTP {resp.status_code} on {method}: {code + ' - ' if code else ''}{detail}"
        return TodoApiError(message, status_code=resp.status_code, code=code)

    def _require_list_id(self, list_id: Optional[str]) -> str:
        target = list_id or self._default_list_id
        if not target:
            raise RemoteStoreError("No task list specified and no default list set")
        return target

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def get_default_list_id(self) -> Optional[str]:
        return self._default_list_id

    def set_default_list_id(self, list_id: str) -> None:
        self._default_list_id = list_id
        self.logger.debug("Default list ID updated: %s", list_id)

    def get_task_lists(self) -> List[Dict[str, Any]]:
        return self._get_paged(self._lists_url())

    def get_or_create_task_list(self, name: str) -> str:
        """Resolve a list by display name, creating it when missing; it becomes the default list."""
        for task_list in self.get_task_lists():
            if task_list.get("displayName") == name:
                self.logger.debug("Found existing task list '%s' (%s)", name, task_list.get("id"))
                self.set_default_list_id(task_list["id"])
                return task_list["id"]

        self.logger.info("Creating new task list: %s", name)
        created = self._request("POST", self._lists_url(), {"displayName": name})
        self.set_default_list_id(created["id"])
        return created["id"]

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def _get_paged(self, url: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        while next_url:
            page = self._request("GET", next_url)
            items.extend(page.get("value", []))
            next_url = page.get("@odata.nextLink")
        return items

    def list_tasks(self, list_id: Optional[str] = None) -> List[RemoteTask]:
        target = self._require_list_id(list_id)
        tasks = [RemoteTask.from_graph(item) for item in self._get_paged(self._tasks_url(target))]
        self.logger.debug("Retrieved %d tasks from list %s", len(tasks), target)
        return tasks

    def create_task(self, title: str) -> RemoteTask:
        return self._create(title, None)

    def create_task_with_start_date(self, title: str, date: str) -> RemoteTask:
        """Create a task whose start date is midnight UTC of ``date`` (YYYY-MM-DD)."""
        return self._create(title, date)

    def _create(self, title: str, start_date: Optional[str]) -> RemoteTask:
        target = self._require_list_id(None)
        payload: Dict[str, Any] = {"title": title}
        if start_date:
            payload["startDateTime"] = {
                "dateTime": f"{start_date}T00:00:00.0000000",
                "timeZone": "UTC",
            }
        created = RemoteTask.from_graph(self._request("POST", self._tasks_url(target), payload))
        self.logger.info("Task created: '%s' (%s)", created.title, created.id)
        return created

    def update_title(self, task_id: str, new_title: str) -> None:
        target = self._require_list_id(None)
        self._request("PATCH", self._task_url(target, task_id), {"title": new_title})
        self.logger.info("Task title updated: %s -> '%s'", task_id, new_title)

    def complete(self, task_id: str) -> None:
        target = self._require_list_id(None)
        self._request("PATCH", self._task_url(target, task_id), {"status": "completed"})
        self.logger.info("Task completed: %s", task_id)
