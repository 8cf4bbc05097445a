"""
Drag-and-drop resolution.

A drag ends with the dragged item (a task card or a column header) and the
id of whatever it was dropped on, which may be a column or another card.
resolve_drag_end() turns that into a concrete move, or None for a no-op.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .schema import Column, Task


class DragType(Enum):
    TASK = "Task"
    COLUMN = "Column"


@dataclass
class DragEnd:
    """A finished drag gesture."""
    active_id: str
    active_type: DragType
    over_id: Optional[str] = None   # None when dropped outside any target


@dataclass
class TaskMove:
    task_id: str
    column_id: str


@dataclass
class ColumnMove:
    active_id: str
    over_id: str


Move = Union[TaskMove, ColumnMove]


def reorder_columns(columns: List[Column], active_id: str, over_id: str) -> List[Column]:
    """
    Move the dragged column to the drop target's index (remove, then insert).
    Returns a new list; unknown ids leave the order unchanged.
    """
    ids = [c.id for c in columns]
    if active_id not in ids or over_id not in ids:
        return list(columns)
    old_index = ids.index(active_id)
    new_index = ids.index(over_id)
    reordered = list(columns)
    moved = reordered.pop(old_index)
    reordered.insert(new_index, moved)
    return reordered


def resolve_drop_column(over_id: str, tasks: List[Task], columns: List[Column]) -> Optional[str]:
    """Column id a card lands in when dropped on over_id, or None if none applies."""
    column_ids = {c.id for c in columns}
    if over_id in column_ids:
        return over_id
    # Dropped on another card: join that card's column
    for t in tasks:
        if t.id == over_id:
            return t.status if t.status in column_ids else None
    return None


def resolve_drag_end(event: DragEnd, tasks: List[Task], columns: List[Column]) -> Optional[Move]:
    if event.over_id is None:
        return None

    if event.active_type == DragType.COLUMN:
        if event.active_id == event.over_id:
            return None
        return ColumnMove(active_id=event.active_id, over_id=event.over_id)

    dragged = next((t for t in tasks if t.id == event.active_id), None)
    if dragged is None:
        return None
    column_id = resolve_drop_column(event.over_id, tasks, columns)
    if column_id is None or column_id == dragged.status:
        return None
    return TaskMove(task_id=dragged.id, column_id=column_id)
