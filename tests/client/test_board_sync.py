"""
Board sync client and drag controller tests against a mocked API
"""
import json

import httpx
import pytest

from app.client.board_sync import BoardSyncClient, BoardSyncError, DragController
from app.client.drag_state import (
    COLUMN,
    TASK,
    BoardLayout,
    ColumnLayout,
    DragCancel,
    DragOver,
    DragStart,
    Drop,
    DropTarget,
    Idle,
    Notify,
)


class FakeBoardApi:
    """Minimal stand-in for the board endpoints of one board"""

    def __init__(self):
        self.board_id = 1
        self.columns = {10: [101, 102, 103], 20: [201]}
        self.column_order = [10, 20]
        self.requests = []
        self.failures = {}

    def fail(self, method: str, path: str, status_code: int, message: str):
        self.failures[(method, path)] = (status_code, message)

    def payload(self):
        return {
            "id": self.board_id,
            "name": "Board",
            "columns": [
                {
                    "id": column_id,
                    "position": position,
                    "tasks": [
                        {"id": task_id, "position": index}
                        for index, task_id in enumerate(self.columns[column_id])
                    ],
                }
                for position, column_id in enumerate(self.column_order)
            ],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        self.requests.append((request.method, path, body))

        failure = self.failures.get((request.method, path))
        if failure:
            status_code, message = failure
            return httpx.Response(
                status_code,
                json={"success": False, "error": {"code": "BIZ_001", "message": message, "details": None}},
            )

        if request.method == "GET" and path == f"/api/v1/boards/{self.board_id}":
            return httpx.Response(200, json=self.payload())

        if request.method == "PATCH" and path.endswith("/tasks/reorder"):
            column_id = int(path.split("/")[4])
            self.columns[column_id] = list(body["taskIds"])
            return httpx.Response(200, json={"success": True, "message": "Tasks reordered successfully"})

        if request.method == "PATCH" and path.endswith("/columns/reorder"):
            self.column_order = list(body["columnIds"])
            return httpx.Response(200, json={"success": True, "message": "Columns reordered successfully"})

        if request.method == "PATCH" and path.endswith("/move"):
            task_id = int(path.split("/")[4])
            for task_ids in self.columns.values():
                if task_id in task_ids:
                    task_ids.remove(task_id)
            self.columns[body["columnId"]].append(task_id)
            return httpx.Response(200, json={"success": True, "message": "Task moved successfully", "task": {}})

        return httpx.Response(404, json={"success": False, "error": {"code": "BIZ_001", "message": "Not found"}})

    def persistence_calls(self):
        return [(method, path) for method, path, _ in self.requests if method != "GET"]


@pytest.fixture
def api():
    return FakeBoardApi()


@pytest.fixture
async def sync_client(api):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api.handler), base_url="http://testserver")
    client = BoardSyncClient(token="session-token", client=http_client)
    yield client
    await http_client.aclose()


@pytest.mark.asyncio
async def test_fetch_board_builds_layout_and_disables_caching(api):
    seen = []

    def handler(request):
        seen.append(request)
        return api.handler(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver") as http_client:
        layout = await BoardSyncClient(token="session-token", client=http_client).fetch_board(1)

    assert layout == BoardLayout(
        board_id=1, columns=(ColumnLayout(10, (101, 102, 103)), ColumnLayout(20, (201,)))
    )
    assert seen[0].headers["authorization"] == "Bearer session-token"
    assert "no-store" in seen[0].headers["cache-control"]
    assert seen[0].headers["pragma"] == "no-cache"


@pytest.mark.asyncio
async def test_error_envelope_becomes_board_sync_error(api, sync_client):
    api.fail("PATCH", "/api/v1/tasks/101/move", 404, "Column not found")

    with pytest.raises(BoardSyncError) as exc_info:
        await sync_client.move_task(101, 99)

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "BIZ_001"
    assert exc_info.value.message == "Column not found"


@pytest.mark.asyncio
async def test_transport_failure_becomes_board_sync_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver") as http_client:
        with pytest.raises(BoardSyncError) as exc_info:
            await BoardSyncClient(client=http_client).reorder_tasks(10, [101])

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_drop_within_column_persists_once_then_reloads(api, sync_client):
    controller = DragController(sync_client, board_id=1)
    await controller.load()
    api.requests.clear()

    await controller.dispatch(DragStart(TASK, 103))
    await controller.dispatch(DragOver(DropTarget(TASK, 101)))
    state = await controller.dispatch(Drop(DropTarget(TASK, 101)))

    assert [(method, path) for method, path, _ in api.requests] == [
        ("PATCH", "/api/v1/columns/10/tasks/reorder"),
        ("GET", "/api/v1/boards/1"),
    ]
    assert api.requests[0][2] == {"taskIds": [103, 101, 102]}
    assert isinstance(state, Idle)
    assert state.layout.column(10).task_ids == (103, 101, 102)
    assert controller.notifications == []


@pytest.mark.asyncio
async def test_move_to_middle_of_column_sends_follow_up_reorder(api, sync_client):
    controller = DragController(sync_client, board_id=1)
    await controller.load()
    api.requests.clear()

    await controller.dispatch(DragStart(TASK, 102))
    state = await controller.dispatch(Drop(DropTarget(TASK, 201)))

    assert api.persistence_calls() == [
        ("PATCH", "/api/v1/tasks/102/move"),
        ("PATCH", "/api/v1/columns/20/tasks/reorder"),
    ]
    assert api.requests[0][2] == {"columnId": 20}
    assert api.requests[1][2] == {"taskIds": [102, 201]}
    assert state.layout.column(20).task_ids == (102, 201)
    assert state.layout.column(10).task_ids == (101, 103)


@pytest.mark.asyncio
async def test_column_drop_reorders_board(api, sync_client):
    controller = DragController(sync_client, board_id=1)
    await controller.load()

    await controller.dispatch(DragStart(COLUMN, 20))
    state = await controller.dispatch(Drop(DropTarget(COLUMN, 10)))

    assert api.column_order == [20, 10]
    assert state.layout.column_ids == (20, 10)


@pytest.mark.asyncio
async def test_failed_move_notifies_and_restores_server_state(api, sync_client):
    api.fail("PATCH", "/api/v1/tasks/101/move", 403, "You don't have permission to modify this board")
    controller = DragController(sync_client, board_id=1)
    await controller.load()
    api.requests.clear()

    await controller.dispatch(DragStart(TASK, 101))
    state = await controller.dispatch(Drop(DropTarget(COLUMN, 20)))

    assert api.persistence_calls() == [("PATCH", "/api/v1/tasks/101/move")]
    assert controller.notifications == [
        Notify(level="error", message="You don't have permission to modify this board")
    ]
    assert isinstance(state, Idle)
    assert state.layout.column(10).task_ids == (101, 102, 103)
    assert state.layout.column(20).task_ids == (201,)


@pytest.mark.asyncio
async def test_cancel_only_reloads(api, sync_client):
    controller = DragController(sync_client, board_id=1)
    await controller.load()
    api.requests.clear()

    await controller.dispatch(DragStart(TASK, 101))
    await controller.dispatch(DragOver(DropTarget(COLUMN, 20)))
    state = await controller.dispatch(DragCancel())

    assert api.persistence_calls() == []
    assert [method for method, _, _ in api.requests] == ["GET"]
    assert isinstance(state, Idle)
    assert state.layout.column(10).task_ids == (101, 102, 103)


@pytest.mark.asyncio
async def test_drop_in_place_makes_no_request(api, sync_client):
    controller = DragController(sync_client, board_id=1)
    await controller.load()
    api.requests.clear()

    await controller.dispatch(DragStart(TASK, 102))
    await controller.dispatch(Drop(DropTarget(TASK, 102)))

    assert api.requests == []
