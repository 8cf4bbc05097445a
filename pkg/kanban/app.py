"""
Board controller.

KanbanApp owns the BoardState and wires every user action to a state
transition followed by a write of the affected keys:

    projects list  → kanban_projects
    priority colours → kanban_settings
    open board     → tasks_<projectId>, columns_<projectId>

Destructive actions ask the confirm callback first (a dialog in a UI,
always-yes by default).
"""
import copy
import logging
from typing import Callable, Dict, List, Optional

from .assist import AssistError, TaskAssistant, apply_suggestion
from .board import BoardState
from .client import BoardDB
from .config import Config
from .dnd import DragEnd, TaskMove, resolve_drag_end
from .schema import Column, PrioritySettings, Project, SortOption, Task
from .seed import SEED_PROJECT_ID, seed_project, seed_tasks, template_columns
from .views import (
    ViewOptions,
    process_tasks,
    table_rows,
    tasks_by_column,
    unique_categories,
    unique_projects,
)

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


class KanbanApp:
    """Top-level controller: state, persistence, confirmations."""

    def __init__(
        self,
        db: BoardDB,
        assistant: Optional[TaskAssistant] = None,
        confirm: Optional[ConfirmFn] = None,
    ):
        self.db = db
        self.assistant = assistant
        self.confirm = confirm or (lambda message: True)
        self.state = BoardState()
        self.view = ViewOptions()

    @classmethod
    def from_config(cls, config: Config, confirm: Optional[ConfirmFn] = None) -> "KanbanApp":
        assistant = TaskAssistant(
            config.gemini_api_key,
            model=config.gemini_model,
            timeout=config.assist_timeout,
        ) if config.gemini_api_key else None
        return cls(BoardDB.from_config(config), assistant=assistant, confirm=confirm)

    # ── Startup / navigation ─────────────────────────────────────────────────

    def start(self) -> None:
        """Load projects and settings; install the welcome project on first run."""
        projects = self.db.get_projects()
        settings = self.db.get_settings()

        if settings:
            self.state.set_priority_settings(settings)

        if projects:
            self.state.projects = projects
            return

        logger.info("No projects found, initializing seed project...")
        self.state.projects = [seed_project()]
        self.db.save_projects(self.state.projects)
        self.db.save_columns(SEED_PROJECT_ID, template_columns())
        self.db.save_tasks(SEED_PROJECT_ID, seed_tasks())

    def open_project(self, project_id: str) -> bool:
        if self.state.find_project(project_id) is None:
            return False
        tasks = self.db.get_tasks(project_id) or []
        columns = self.db.get_columns(project_id)
        self.state.open_board(project_id, tasks, columns or template_columns())
        if not columns:
            self._save_columns()
        return True

    def close_project(self) -> None:
        self.state.close_board()
        self.view = ViewOptions()

    def _require_board(self) -> str:
        if self.state.current_project_id is None:
            raise RuntimeError("No project is open")
        return self.state.current_project_id

    # ── Persistence ──────────────────────────────────────────────────────────

    def _save_projects(self) -> None:
        self.db.save_projects(self.state.projects)

    def _save_tasks(self) -> None:
        self.db.save_tasks(self._require_board(), self.state.tasks)

    def _save_columns(self) -> None:
        self.db.save_columns(self._require_board(), self.state.columns)

    # ── Projects ─────────────────────────────────────────────────────────────

    def create_project(self, name: str, description: str = "") -> Project:
        project = self.state.save_project(name, description)
        self.db.save_columns(project.id, template_columns())
        self.db.save_tasks(project.id, [])
        self._save_projects()
        return project

    def edit_project(self, project_id: str, name: str, description: str = "") -> bool:
        if self.state.find_project(project_id) is None:
            return False
        self.state.save_project(name, description, project_id=project_id)
        self._save_projects()
        return True

    def delete_project(self, project_id: str) -> bool:
        if self.state.find_project(project_id) is None:
            return False
        if not self.confirm(
            "Are you sure you want to delete this project? "
            "All tasks inside it will be permanently deleted."
        ):
            return False
        self.db.drop_project_data(project_id)
        self.state.remove_project(project_id)
        self._save_projects()
        return True

    # ── Tasks ────────────────────────────────────────────────────────────────

    def create_task(self, title: str, status: Optional[str] = None, **fields) -> Task:
        self._require_board()
        task = self.state.add_task(title, status=status, **fields)
        self._save_tasks()
        return task

    def update_task(self, task: Task) -> bool:
        self._require_board()
        if not self.state.update_task(task):
            return False
        self._save_tasks()
        return True

    def delete_task(self, task_id: str) -> bool:
        self._require_board()
        if self.state.find_task(task_id) is None:
            return False
        if not self.confirm(
            "Are you sure you want to delete this task? This action cannot be undone."
        ):
            return False
        self.state.remove_task(task_id)
        self._save_tasks()
        return True

    def toggle_task(self, task_id: str) -> bool:
        self._require_board()
        if not self.state.toggle_task(task_id):
            return False
        self._save_tasks()
        return True

    def move_task(self, task_id: str, column_id: str) -> bool:
        self._require_board()
        if not self.state.move_task(task_id, column_id):
            return False
        self._save_tasks()
        return True

    def assist_task(self, task_id: str) -> Optional[Task]:
        """
        Fill in description, category, priority and subtasks from the model.
        Raises AssistError on failure; the task is left as it was.
        """
        self._require_board()
        task = self.state.find_task(task_id)
        if task is None:
            return None
        if not task.title:
            return task
        if self.assistant is None:
            raise AssistError("AI assist is not configured (set GEMINI_API_KEY)")

        suggestion = self.assistant.suggest(task.title, task.description)
        updated = apply_suggestion(copy.deepcopy(task), suggestion)
        self.state.update_task(updated)
        self._save_tasks()
        return updated

    # ── Columns ──────────────────────────────────────────────────────────────

    def add_column(self, title: str, color: str = "#94a3b8") -> Column:
        self._require_board()
        column = self.state.add_column(title, color)
        self._save_columns()
        return column

    def update_column(self, column: Column) -> bool:
        self._require_board()
        if not self.state.update_column(column):
            return False
        self._save_columns()
        return True

    def delete_column(self, column_id: str) -> bool:
        self._require_board()
        if len(self.state.columns) <= 1:
            logger.warning("Refusing to delete the last column: a board needs at least one.")
            return False
        if self.state.find_column(column_id) is None:
            return False
        if not self.confirm(
            "Are you sure? Tasks in this column will be moved to the first available column."
        ):
            return False
        self.state.delete_column(column_id)
        self._save_tasks()
        self._save_columns()
        return True

    def handle_drag_end(self, event: DragEnd) -> bool:
        """Apply a finished drag. Ignored while the view is sorted or filtered."""
        self._require_board()
        if not self.view.drag_enabled:
            return False
        move = resolve_drag_end(event, self.visible_tasks(), self.state.columns)
        if not self.state.apply_move(move):
            return False
        if isinstance(move, TaskMove):
            self._save_tasks()
        else:
            self._save_columns()
        return True

    # ── Settings ─────────────────────────────────────────────────────────────

    def update_priority_settings(self, settings: PrioritySettings) -> None:
        self.state.set_priority_settings(settings)
        self.db.save_settings(self.state.priority_settings)

    def reset_priority_settings(self) -> None:
        self.state.reset_priority_settings()
        self.db.save_settings(self.state.priority_settings)

    # ── Views ────────────────────────────────────────────────────────────────

    def set_view(
        self,
        search: Optional[str] = None,
        project: Optional[str] = None,
        category: Optional[str] = None,
        sort: Optional[SortOption] = None,
    ) -> ViewOptions:
        if search is not None:
            self.view.search = search
        if project is not None:
            self.view.project = project
        if category is not None:
            self.view.category = category
        if sort is not None:
            self.view.sort = sort
        return self.view

    def visible_tasks(self) -> List[Task]:
        return process_tasks(self.state.tasks, self.view)

    def board(self) -> Dict[str, List[Task]]:
        return tasks_by_column(self.visible_tasks(), self.state.columns)

    def table(self) -> List[dict]:
        return table_rows(self.visible_tasks(), self.state.columns, self.state.priority_settings)

    def filter_choices(self) -> Dict[str, List[str]]:
        return {
            "projects": unique_projects(self.state.tasks),
            "categories": unique_categories(self.state.tasks),
        }
