"""
HTTP client that keeps a board view in step with the server

``BoardSyncClient`` wraps the board fetch and the three ordering calls.
``DragController`` feeds UI events to the drag state machine and executes
the commands it emits, so every drop ends in a reload of server state.
"""
import logging
from collections import deque
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.client.drag_state import (
    BoardLayout,
    Command,
    DragState,
    Idle,
    Loaded,
    MoveTask,
    Notify,
    Reload,
    ReloadFailed,
    ReorderColumns,
    ReorderTasks,
    Settled,
    transition,
)

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class BoardSyncError(Exception):
    """A board call failed, either at the transport or with an error response"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "BoardSyncError":
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        return cls(
            error.get("message") or f"Request failed with status {response.status_code}",
            status_code=response.status_code,
            error_code=error.get("code"),
            details=error.get("details"),
        )


class BoardSyncClient:
    """Async client for the board ordering API"""

    def __init__(
        self,
        base_url: str = "",
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = headers

    async def __aenter__(self) -> "BoardSyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {**NO_CACHE_HEADERS, **self._headers}
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise BoardSyncError(f"Could not reach the server: {e}") from e

        if response.is_error:
            error = BoardSyncError.from_response(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {error.message}")
            raise error
        return response.json()

    async def fetch_board(self, board_id: int) -> BoardLayout:
        payload = await self._request("GET", f"/api/v1/boards/{board_id}")
        return BoardLayout.from_payload(payload)

    async def reorder_columns(self, board_id: int, column_ids: Sequence[int]) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/api/v1/boards/{board_id}/columns/reorder", {"columnIds": list(column_ids)}
        )

    async def reorder_tasks(self, column_id: int, task_ids: Sequence[int]) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/api/v1/columns/{column_id}/tasks/reorder", {"taskIds": list(task_ids)}
        )

    async def move_task(self, task_id: int, column_id: int) -> Dict[str, Any]:
        return await self._request("PATCH", f"/api/v1/tasks/{task_id}/move", {"columnId": column_id})


class DragController:
    """Drives the drag state machine for one board"""

    def __init__(self, client: BoardSyncClient, board_id: int):
        self.client = client
        self.board_id = board_id
        self.state: DragState = Idle()
        self.notifications: List[Notify] = []

    async def load(self) -> DragState:
        """Fetch the board and start from server state"""
        layout = await self.client.fetch_board(self.board_id)
        return await self.dispatch(Loaded(layout=layout))

    async def dispatch(self, event) -> DragState:
        """Apply an event, then run emitted commands until the machine is quiet"""
        pending = deque([event])
        while pending:
            current = pending.popleft()
            self.state, commands = transition(self.state, current)
            for command in commands:
                follow = await self._execute(command)
                if follow is not None:
                    pending.append(follow)
        return self.state

    async def _execute(self, command: Command):
        """Run one command and return the event describing its outcome"""
        if isinstance(command, Notify):
            self.notifications.append(command)
            logger.log(logging.ERROR if command.level == "error" else logging.INFO, command.message)
            return None

        if isinstance(command, Reload):
            try:
                layout = await self.client.fetch_board(command.board_id)
            except BoardSyncError as e:
                return ReloadFailed(message=e.message)
            return Loaded(layout=layout)

        try:
            if isinstance(command, ReorderColumns):
                await self.client.reorder_columns(command.board_id, command.column_ids)
            elif isinstance(command, ReorderTasks):
                await self.client.reorder_tasks(command.column_id, command.task_ids)
            elif isinstance(command, MoveTask):
                await self.client.move_task(command.task_id, command.column_id)
                if command.follow_up is not None:
                    follow_up = command.follow_up
                    await self.client.reorder_tasks(follow_up.column_id, follow_up.task_ids)
            else:
                raise TypeError(f"Unknown command: {command!r}")
        except BoardSyncError as e:
            return Settled(ok=False, message=e.message)
        return Settled(ok=True)
