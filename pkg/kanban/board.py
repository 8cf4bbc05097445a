"""
Board state and its transitions.

BoardState holds everything the board shows: the project list, the open
project's tasks and columns, and the global priority colours. It is changed
only through the methods below. Transitions that can be refused (unknown id,
deleting the last column) return False and leave the state untouched;
missing required fields raise ValueError.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .dnd import ColumnMove, Move, TaskMove, reorder_columns
from .schema import (
    Column,
    PrioritySettings,
    Project,
    SubTask,
    Task,
    new_id,
    now_ms,
)
from .seed import default_priority_settings


def _required(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{what} is required")
    return value


@dataclass
class BoardState:
    projects: List[Project] = field(default_factory=list)
    current_project_id: Optional[str] = None
    tasks: List[Task] = field(default_factory=list)
    columns: List[Column] = field(default_factory=list)
    priority_settings: PrioritySettings = field(default_factory=default_priority_settings)

    @property
    def current_project(self) -> Optional[Project]:
        return self.find_project(self.current_project_id) if self.current_project_id else None

    def find_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_column(self, column_id: str) -> Optional[Column]:
        return next((c for c in self.columns if c.id == column_id), None)

    # ── Projects ─────────────────────────────────────────────────────────────

    def save_project(self, name: str, description: str = "", project_id: Optional[str] = None) -> Project:
        """Insert a new project, or update name/description of an existing one."""
        _required(name, "Project name")
        existing = self.find_project(project_id) if project_id else None
        if existing:
            existing.name = name
            existing.description = description
            return existing
        project = Project(id=project_id or new_id(), name=name, description=description)
        self.projects = self.projects + [project]
        return project

    def remove_project(self, project_id: str) -> bool:
        if not self.find_project(project_id):
            return False
        self.projects = [p for p in self.projects if p.id != project_id]
        if self.current_project_id == project_id:
            self.close_board()
        return True

    def open_board(self, project_id: str, tasks: List[Task], columns: List[Column]) -> None:
        self.current_project_id = project_id
        self.tasks = list(tasks)
        self.columns = list(columns)

    def close_board(self) -> None:
        self.current_project_id = None
        self.tasks = []
        self.columns = []

    # ── Tasks ────────────────────────────────────────────────────────────────

    def add_task(self, title: str, status: Optional[str] = None, **fields) -> Task:
        """
        Create a task with a fresh id and creation time. Without an explicit
        status it lands in the first column.
        """
        _required(title, "Task title")
        reserved = {"id", "created_at"} & set(fields)
        if reserved:
            raise ValueError(f"add_task assigns {', '.join(sorted(reserved))} itself")
        if status is None:
            status = self.columns[0].id if self.columns else ""
        task = Task(id=new_id(), title=title, status=status, created_at=now_ms(), **fields)
        self.tasks = self.tasks + [task]
        return task

    def update_task(self, task: Task) -> bool:
        """Replace the stored task with the same id."""
        _required(task.title, "Task title")
        if not self.find_task(task.id):
            return False
        self.tasks = [task if t.id == task.id else t for t in self.tasks]
        return True

    def remove_task(self, task_id: str) -> bool:
        if not self.find_task(task_id):
            return False
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return True

    def move_task(self, task_id: str, column_id: str) -> bool:
        task = self.find_task(task_id)
        if task is None or self.find_column(column_id) is None:
            return False
        if task.status == column_id:
            return False
        self.tasks = [replace(t, status=column_id) if t.id == task_id else t for t in self.tasks]
        return True

    def toggle_task(self, task_id: str) -> bool:
        task = self.find_task(task_id)
        if task is None:
            return False
        self.tasks = [
            replace(t, is_completed=not t.is_completed) if t.id == task_id else t
            for t in self.tasks
        ]
        return True

    def add_subtask(self, task_id: str, title: str) -> Optional[SubTask]:
        task = self.find_task(task_id)
        if task is None or not title.strip():
            return None
        sub = SubTask(id=new_id(), title=title)
        task.sub_tasks = task.sub_tasks + [sub]
        return sub

    def toggle_subtask(self, task_id: str, subtask_id: str) -> bool:
        task = self.find_task(task_id)
        if task is None:
            return False
        for st in task.sub_tasks:
            if st.id == subtask_id:
                st.is_completed = not st.is_completed
                return True
        return False

    def remove_subtask(self, task_id: str, subtask_id: str) -> bool:
        task = self.find_task(task_id)
        if task is None or not any(st.id == subtask_id for st in task.sub_tasks):
            return False
        task.sub_tasks = [st for st in task.sub_tasks if st.id != subtask_id]
        return True

    # ── Columns ──────────────────────────────────────────────────────────────

    def add_column(self, title: str, color: str = "#94a3b8", column_id: Optional[str] = None) -> Column:
        _required(title, "Column title")
        column = Column(id=column_id or new_id(), title=title, color=color)
        self.columns = self.columns + [column]
        return column

    def update_column(self, column: Column) -> bool:
        _required(column.title, "Column title")
        if not self.find_column(column.id):
            return False
        self.columns = [column if c.id == column.id else c for c in self.columns]
        return True

    def delete_column(self, column_id: str) -> bool:
        """
        Remove a column and move its tasks to the first remaining column.
        Refused when it is the only column.
        """
        if len(self.columns) <= 1 or not self.find_column(column_id):
            return False
        remaining = [c for c in self.columns if c.id != column_id]
        fallback = remaining[0].id
        self.tasks = [
            replace(t, status=fallback) if t.status == column_id else t
            for t in self.tasks
        ]
        self.columns = remaining
        return True

    def move_column(self, active_id: str, over_id: str) -> bool:
        reordered = reorder_columns(self.columns, active_id, over_id)
        if [c.id for c in reordered] == [c.id for c in self.columns]:
            return False
        self.columns = reordered
        return True

    def apply_move(self, move: Optional[Move]) -> bool:
        if isinstance(move, TaskMove):
            return self.move_task(move.task_id, move.column_id)
        if isinstance(move, ColumnMove):
            return self.move_column(move.active_id, move.over_id)
        return False

    # ── Settings ─────────────────────────────────────────────────────────────

    def set_priority_settings(self, settings: PrioritySettings) -> None:
        self.priority_settings = dict(settings)

    def reset_priority_settings(self) -> None:
        self.priority_settings = default_priority_settings()
