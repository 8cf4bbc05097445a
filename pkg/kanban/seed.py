"""
Defaults for new boards: template columns, priority colours, and the
welcome project installed on first start.
"""
import copy
from typing import List

from .schema import (
    Column,
    Priority,
    PriorityColor,
    PrioritySettings,
    Project,
    SubTask,
    Task,
    now_ms,
)

DAY_MS = 86_400_000

TEMPLATE_COLUMNS: List[Column] = [
    Column(id="Draft", title="DRAFT", color="#94a3b8"),
    Column(id="To Do", title="TO-DO", color="#f59e0b"),
    Column(id="On Going", title="ON GOING", color="#3b82f6"),
    Column(id="Complete", title="COMPLETE", color="#22c55e"),
]

DEFAULT_PRIORITY_SETTINGS: PrioritySettings = {
    Priority.LOW: PriorityColor(bg="#dbeafe", text="#1e40af"),
    Priority.MEDIUM: PriorityColor(bg="#fef3c7", text="#92400e"),
    Priority.HIGH: PriorityColor(bg="#fee2e2", text="#991b1b"),
}

SEED_PROJECT_ID = "intro-project-welcome"


def template_columns() -> List[Column]:
    """Fresh copy of the template columns for a new project."""
    return copy.deepcopy(TEMPLATE_COLUMNS)


def default_priority_settings() -> PrioritySettings:
    return copy.deepcopy(DEFAULT_PRIORITY_SETTINGS)


def seed_project() -> Project:
    return Project(
        id=SEED_PROJECT_ID,
        name="Welcome to Simplo Kanban",
        description='A quick tour of the board. Open it to start!',
    )


def seed_tasks() -> List[Task]:
    now = now_ms()
    return [
        Task(
            id="intro-task-1",
            title="Welcome! Read Me First",
            description=(
                "## Welcome to Simplo Kanban!\n\n"
                "* **Projects**: manage multiple workspaces.\n"
                "* **Columns**: categorize work (Draft, To-Do, etc.).\n"
                "* **Privacy**: your data is stored locally (or in your own DB)."
            ),
            status="Draft",
            priority=Priority.LOW,
            category="Onboarding",
            project="Welcome",
            created_at=now,
        ),
        Task(
            id="intro-task-2",
            title="Try Dragging This Card",
            description="Drag it to the **ON GOING** column to update its status.",
            status="To Do",
            priority=Priority.HIGH,
            category="Interaction",
            project="Welcome",
            created_at=now,
            due_date=now + DAY_MS,
        ),
        Task(
            id="intro-task-3",
            title="Edit Task Details",
            description="Open this card to add descriptions, due dates, assignees and subtasks.",
            status="To Do",
            priority=Priority.MEDIUM,
            category="Features",
            project="Welcome",
            created_at=now,
            sub_tasks=[
                SubTask(id="st-1", title="Open this task", is_completed=True),
                SubTask(id="st-2", title="Add a subtask"),
            ],
        ),
        Task(
            id="intro-task-4",
            title="Assignees & Media",
            description="Tasks can be assigned to people and carry an image.",
            status="On Going",
            priority=Priority.MEDIUM,
            category="Features",
            project="Welcome",
            created_at=now,
            assignee="New User",
            media="https://images.unsplash.com/photo-1542626991-cbc4e32524cc?w=400&q=80",
        ),
        Task(
            id="intro-task-5",
            title="Completed Task",
            description="This task is marked as complete. Toggle it from the card.",
            status="Complete",
            priority=Priority.LOW,
            category="General",
            project="Welcome",
            is_completed=True,
            created_at=now,
        ),
    ]
