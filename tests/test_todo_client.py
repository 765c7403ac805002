"""
Tests for the Microsoft Graph To Do client using httpx.MockTransport.
"""

import json

import httpx
import pytest

from todo_integrator.core.exceptions import AuthenticationError, RemoteStoreError, TodoApiError
from todo_integrator.core.models import TaskStatus
from todo_integrator.todo.client import GRAPH_BASE_URL, TodoApiClient


LISTS_URL = f"{GRAPH_BASE_URL}/me/todo/lists"


class GraphStub:
    """Records requests and answers them from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def add(self, method, url, status=200, body=None):
        self.routes[(method, url)] = (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url))
        if key not in self.routes:
            return httpx.Response(404, json={"error": {"code": "itemNotFound", "message": "no route"}})
        status, body = self.routes[key]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def bodies(self, method):
        return [json.loads(r.content) for r in self.requests if r.method == method]


@pytest.fixture
def graph():
    return GraphStub()


@pytest.fixture
def client(graph):
    http = httpx.Client(transport=httpx.MockTransport(graph))
    api = TodoApiClient(lambda: "token-123", default_list_id="L1", http_client=http)
    yield api
    http.close()


def _task(task_id, title, **extra):
    payload = {"id": task_id, "title": title, "status": "notStarted",
               "createdDateTime": "2024-01-10T09:00:00.1234567Z"}
    payload.update(extra)
    return payload


class TestRequests:

    def test_bearer_header(self, client, graph):
        graph.add("GET", f"{LISTS_URL}/L1/tasks", body={"value": []})

        client.list_tasks()

        assert graph.requests[0].headers["Authorization"] == "Bearer token-123"

    def test_token_provider_failure(self, graph):
        def broken():
            raise RuntimeError("expired")

        api = TodoApiClient(broken, default_list_id="L1",
                            http_client=httpx.Client(transport=httpx.MockTransport(graph)))
        with pytest.raises(AuthenticationError):
            api.list_tasks()
        assert graph.requests == []

    def test_empty_token(self, graph):
        api = TodoApiClient(lambda: "", default_list_id="L1",
                            http_client=httpx.Client(transport=httpx.MockTransport(graph)))
        with pytest.raises(AuthenticationError):
            api.complete("t1")

    def test_graph_error_is_translated(self, client, graph):
        graph.add("PATCH", f"{LISTS_URL}/L1/tasks/t1", status=403,
                  body={"error": {"code": "accessDenied", "message": "Access is denied."}})

        with pytest.raises(TodoApiError) as excinfo:
            client.complete("t1")

        assert excinfo.value.status_code == 403
        assert excinfo.value.code == "accessDenied"
        assert "Access is denied." in str(excinfo.value)

    def test_transport_error_is_translated(self):
        def explode(request):
            raise httpx.ConnectError("offline", request=request)

        api = TodoApiClient(lambda: "t", default_list_id="L1",
                            http_client=httpx.Client(transport=httpx.MockTransport(explode)))
        with pytest.raises(TodoApiError):
            api.list_tasks()

    def test_no_default_list(self, graph):
        api = TodoApiClient(lambda: "t", http_client=httpx.Client(transport=httpx.MockTransport(graph)))
        with pytest.raises(RemoteStoreError):
            api.list_tasks()
        with pytest.raises(RemoteStoreError):
            api.create_task("x")


class TestLists:

    def test_existing_list_becomes_default(self, graph):
        graph.add("GET", LISTS_URL, body={"value": [
            {"id": "A", "displayName": "Work"},
            {"id": "B", "displayName": "Obsidian Tasks"},
        ]})
        api = TodoApiClient(lambda: "t", http_client=httpx.Client(transport=httpx.MockTransport(graph)))

        assert api.get_or_create_task_list("Obsidian Tasks") == "B"
        assert api.get_default_list_id() == "B"
        assert graph.bodies("POST") == []

    def test_missing_list_is_created(self, graph):
        graph.add("GET", LISTS_URL, body={"value": []})
        graph.add("POST", LISTS_URL, status=201, body={"id": "NEW", "displayName": "Obsidian Tasks"})
        api = TodoApiClient(lambda: "t", http_client=httpx.Client(transport=httpx.MockTransport(graph)))

        assert api.get_or_create_task_list("Obsidian Tasks") == "NEW"
        assert graph.bodies("POST") == [{"displayName": "Obsidian Tasks"}]
        assert api.get_default_list_id() == "NEW"


class TestTasks:

    def test_list_tasks_follows_next_link(self, client, graph):
        page2 = f"{LISTS_URL}/L1/tasks?skiptoken=page2"
        graph.add("GET", f"{LISTS_URL}/L1/tasks", body={
            "value": [_task("t1", "First")],
            "@odata.nextLink": page2,
        })
        graph.add("GET", page2, body={"value": [_task(
            "t2", "Second", status="completed",
            completedDateTime={"dateTime": "2024-01-20T00:00:00.0000000", "timeZone": "UTC"},
            dueDateTime={"dateTime": "2024-01-19T00:00:00.0000000", "timeZone": "UTC"},
        )]})

        tasks = client.list_tasks()

        assert [t.id for t in tasks] == ["t1", "t2"]
        assert tasks[0].status == TaskStatus.NOT_STARTED
        assert tasks[0].due is None
        assert tasks[1].is_completed
        assert tasks[1].completed_at == "2024-01-20T00:00:00.0000000"
        assert tasks[1].due.date_time == "2024-01-19T00:00:00.0000000"

    def test_create_task_with_start_date(self, client, graph):
        graph.add("POST", f"{LISTS_URL}/L1/tasks", status=201, body=_task("t9", "Write report"))

        created = client.create_task_with_start_date("Write report", "2024-01-07")

        assert created.id == "t9"
        assert graph.bodies("POST") == [{
            "title": "Write report",
            "startDateTime": {"dateTime": "2024-01-07T00:00:00.0000000", "timeZone": "UTC"},
        }]

    def test_create_task_keeps_title_verbatim(self, client, graph):
        graph.add("POST", f"{LISTS_URL}/L1/tasks", status=201, body=_task("t9", "Buy milk [todo::old]"))

        client.create_task_with_start_date("Buy milk [todo::old]", "2024-01-15")

        assert [body["title"] for body in graph.bodies("POST")] == ["Buy milk [todo::old]"]

    def test_create_task_without_date(self, client, graph):
        graph.add("POST", f"{LISTS_URL}/L1/tasks", status=201, body=_task("t9", "Plain"))

        client.create_task("Plain")

        assert graph.bodies("POST") == [{"title": "Plain"}]

    def test_update_title(self, client, graph):
        graph.add("PATCH", f"{LISTS_URL}/L1/tasks/t1", body=_task("t1", "Clean"))

        client.update_title("t1", "Clean")

        assert graph.bodies("PATCH") == [{"title": "Clean"}]

    def test_complete(self, client, graph):
        graph.add("PATCH", f"{LISTS_URL}/L1/tasks/t1", status=204)

        client.complete("t1")

        assert graph.bodies("PATCH") == [{"status": "completed"}]

    def test_explicit_list_id(self, client, graph):
        graph.add("GET", f"{LISTS_URL}/OTHER/tasks", body={"value": []})
        assert client.list_tasks("OTHER") == []
