"""
Drag and drop state machine for a single board view

The machine is pure: ``transition(state, event)`` returns the next state and
the commands the caller must execute. Hovering only rearranges a local
preview; a drop emits at most one persistence command, and whatever that
command's outcome the board is reloaded from the server before another drag
may start. A cancelled drag waits for its reload the same way.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple, Union

COLUMN = "column"
TASK = "task"
ITEM_KINDS = (COLUMN, TASK)


# ----------------------------------------------------------------------
# Local board ordering


@dataclass(frozen=True)
class ColumnLayout:
    id: int
    task_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class BoardLayout:
    board_id: int
    columns: Tuple[ColumnLayout, ...] = ()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "BoardLayout":
        """Build a layout from a board detail response"""
        columns = sorted(payload.get("columns") or [], key=lambda c: (c["position"], c["id"]))
        return cls(
            board_id=payload["id"],
            columns=tuple(
                ColumnLayout(
                    id=column["id"],
                    task_ids=tuple(
                        task["id"]
                        for task in sorted(column.get("tasks") or [], key=lambda t: (t["position"], t["id"]))
                    ),
                )
                for column in columns
            ),
        )

    @property
    def column_ids(self) -> Tuple[int, ...]:
        return tuple(column.id for column in self.columns)

    def column(self, column_id: int) -> Optional[ColumnLayout]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def locate_task(self, task_id: int) -> Optional[Tuple[int, int]]:
        """(column id, index) of a task, or None"""
        for column in self.columns:
            if task_id in column.task_ids:
                return column.id, column.task_ids.index(task_id)
        return None

    def with_column_moved(self, column_id: int, index: int) -> "BoardLayout":
        columns = [column for column in self.columns if column.id != column_id]
        moved = self.column(column_id)
        columns.insert(index, moved)
        return replace(self, columns=tuple(columns))

    def with_task_moved(self, task_id: int, column_id: int, index: int) -> "BoardLayout":
        columns = []
        for column in self.columns:
            task_ids = [t for t in column.task_ids if t != task_id]
            if column.id == column_id:
                task_ids.insert(index, task_id)
            columns.append(replace(column, task_ids=tuple(task_ids)))
        return replace(self, columns=tuple(columns))


@dataclass(frozen=True)
class DropTarget:
    """The column or task the pointer is over"""
    kind: str
    item_id: int


# ----------------------------------------------------------------------
# States


@dataclass(frozen=True)
class Idle:
    layout: Optional[BoardLayout] = None


@dataclass(frozen=True)
class Dragging:
    layout: BoardLayout
    kind: str
    item_id: int
    origin_parent_id: int
    preview: BoardLayout


@dataclass(frozen=True)
class HoverPreview:
    layout: BoardLayout
    kind: str
    item_id: int
    origin_parent_id: int
    preview: BoardLayout
    target: DropTarget
    candidate_parent_id: int
    candidate_index: int


@dataclass(frozen=True)
class Settling:
    """A persistence call or a reload is in flight; no new drag may start"""
    layout: BoardLayout
    preview: BoardLayout


DragState = Union[Idle, Dragging, HoverPreview, Settling]


# ----------------------------------------------------------------------
# Events


@dataclass(frozen=True)
class Loaded:
    layout: BoardLayout


@dataclass(frozen=True)
class ReloadFailed:
    message: str


@dataclass(frozen=True)
class DragStart:
    kind: str
    item_id: int


@dataclass(frozen=True)
class DragOver:
    target: DropTarget


@dataclass(frozen=True)
class Drop:
    target: Optional[DropTarget] = None


@dataclass(frozen=True)
class DragCancel:
    pass


@dataclass(frozen=True)
class Settled:
    ok: bool
    message: Optional[str] = None


# ----------------------------------------------------------------------
# Commands


@dataclass(frozen=True)
class ReorderColumns:
    board_id: int
    column_ids: Tuple[int, ...]


@dataclass(frozen=True)
class ReorderTasks:
    column_id: int
    task_ids: Tuple[int, ...]


@dataclass(frozen=True)
class MoveTask:
    task_id: int
    column_id: int
    # the server appends moved tasks; this restores any other drop position
    follow_up: Optional[ReorderTasks] = None


@dataclass(frozen=True)
class Reload:
    board_id: int


@dataclass(frozen=True)
class Notify:
    level: str
    message: str


Command = Union[ReorderColumns, ReorderTasks, MoveTask, Reload, Notify]
Transition = Tuple[DragState, List[Command]]


def visible_layout(state: DragState) -> Optional[BoardLayout]:
    """The ordering the board view should render for ``state``"""
    if isinstance(state, (Dragging, HoverPreview, Settling)):
        return state.preview
    return state.layout


def _placement(preview: BoardLayout, kind: str, item_id: int,
               target: DropTarget) -> Optional[Tuple[int, int]]:
    """Where the dragged item lands for ``target`` as (parent id, index).

    Dropping onto a sibling takes that sibling's slot. A task dropped onto a
    column body goes to the end of that column, or stays put when it is
    already there.
    """
    if kind == COLUMN:
        if target.kind == COLUMN:
            column_id = target.item_id
        else:
            located = preview.locate_task(target.item_id)
            if located is None:
                return None
            column_id = located[0]
        if preview.column(column_id) is None:
            return None
        return preview.board_id, preview.column_ids.index(column_id)

    current = preview.locate_task(item_id)
    if current is None:
        return None

    if target.kind == TASK:
        located = preview.locate_task(target.item_id)
        if located is None:
            return None
        return located

    column = preview.column(target.item_id)
    if column is None:
        return None
    if column.id == current[0]:
        return current
    return column.id, len(column.task_ids)


def _hover(state: Union[Dragging, HoverPreview], target: DropTarget) -> Union[Dragging, HoverPreview]:
    # pointer still over the same target; re-applying would shift the item again
    if isinstance(state, HoverPreview) and state.target == target:
        return state

    placement = _placement(state.preview, state.kind, state.item_id, target)
    if placement is None:
        return state

    parent_id, index = placement
    if state.kind == COLUMN:
        preview = state.preview.with_column_moved(state.item_id, index)
    else:
        preview = state.preview.with_task_moved(state.item_id, parent_id, index)

    return HoverPreview(
        layout=state.layout,
        kind=state.kind,
        item_id=state.item_id,
        origin_parent_id=state.origin_parent_id,
        preview=preview,
        target=target,
        candidate_parent_id=parent_id,
        candidate_index=index,
    )


def _persist_command(layout: BoardLayout, preview: BoardLayout, kind: str,
                     item_id: int, origin_parent_id: int) -> Optional[Command]:
    """The single persistence call that turns ``layout`` into ``preview``"""
    if kind == COLUMN:
        if preview.column_ids == layout.column_ids:
            return None
        return ReorderColumns(board_id=layout.board_id, column_ids=preview.column_ids)

    target_column_id, _ = preview.locate_task(item_id)
    final_order = preview.column(target_column_id).task_ids

    if target_column_id == origin_parent_id:
        if final_order == layout.column(origin_parent_id).task_ids:
            return None
        return ReorderTasks(column_id=origin_parent_id, task_ids=final_order)

    appended_order = layout.column(target_column_id).task_ids + (item_id,)
    follow_up = None
    if final_order != appended_order:
        follow_up = ReorderTasks(column_id=target_column_id, task_ids=final_order)
    return MoveTask(task_id=item_id, column_id=target_column_id, follow_up=follow_up)


def _await_reload(state: Union[Dragging, HoverPreview]) -> Transition:
    """Drop the preview and hold until the server layout is reloaded"""
    return Settling(layout=state.layout, preview=state.layout), [Reload(board_id=state.layout.board_id)]


def transition(state: DragState, event) -> Transition:
    """Advance the machine by one event.

    Events that make no sense in the current state leave it unchanged and
    emit nothing.
    """
    if isinstance(event, Loaded):
        # reloads are issued from Settling; a late one must not abort a new drag
        if isinstance(state, (Dragging, HoverPreview)):
            return state, []
        return Idle(layout=event.layout), []

    if isinstance(state, Idle):
        if isinstance(event, DragStart) and state.layout is not None and event.kind in ITEM_KINDS:
            layout = state.layout
            if event.kind == COLUMN:
                if layout.column(event.item_id) is None:
                    return state, []
                origin = layout.board_id
            else:
                located = layout.locate_task(event.item_id)
                if located is None:
                    return state, []
                origin = located[0]
            return Dragging(
                layout=layout,
                kind=event.kind,
                item_id=event.item_id,
                origin_parent_id=origin,
                preview=layout,
            ), []
        if isinstance(event, ReloadFailed):
            return state, [Notify(level="error", message=event.message)]
        return state, []

    if isinstance(state, (Dragging, HoverPreview)):
        if isinstance(event, DragOver):
            return _hover(state, event.target), []

        if isinstance(event, DragCancel) or (isinstance(event, Drop) and event.target is None):
            return _await_reload(state)

        if isinstance(event, Drop):
            if _placement(state.preview, state.kind, state.item_id, event.target) is None:
                return _await_reload(state)

            hovered = _hover(state, event.target)
            command = _persist_command(
                hovered.layout, hovered.preview, hovered.kind, hovered.item_id, hovered.origin_parent_id
            )
            if command is None:
                return Idle(layout=hovered.layout), []
            return Settling(layout=hovered.layout, preview=hovered.preview), [command]

        return state, []

    if isinstance(state, Settling):
        if isinstance(event, Settled):
            commands: List[Command] = []
            if not event.ok:
                commands.append(Notify(level="error", message=event.message or "Failed to save board order"))
            commands.append(Reload(board_id=state.layout.board_id))
            return state, commands

        if isinstance(event, ReloadFailed):
            return Idle(layout=state.layout), [Notify(level="error", message=event.message)]

        return state, []

    return state, []
