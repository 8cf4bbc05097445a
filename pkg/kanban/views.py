"""
Derived views over a project's task list.

process_tasks() is the board toolbar pipeline, always in this order:
    search → project label filter → category filter → sort
The helpers below it shape the result for the board (per column) and the
table (one row per task).
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from .schema import Column, PrioritySettings, SortOption, Task, now_ms

ALL = "All"


@dataclass
class ViewOptions:
    """Toolbar state: search box, two filter dropdowns, sort dropdown."""
    search: str = ""
    project: str = ALL
    category: str = ALL
    sort: SortOption = SortOption.NONE

    @property
    def drag_enabled(self) -> bool:
        """
        Drag-and-drop works on indexes into the unsorted task list, so it is
        only allowed while the view shows that list unsorted and unfiltered.
        Search alone keeps it on.
        """
        return (
            self.sort == SortOption.NONE
            and self.project == ALL
            and self.category == ALL
        )


def matches_search(task: Task, query: str) -> bool:
    q = query.lower()
    return (
        q in task.title.lower()
        or q in task.category.lower()
        or q in task.project.lower()
    )


def sort_tasks(tasks: List[Task], option: SortOption) -> List[Task]:
    """Return a sorted copy. Sorting is stable; NONE keeps the input order."""
    if option == SortOption.DATE:
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)
    if option == SortOption.PRIORITY:
        return sorted(tasks, key=lambda t: t.priority.rank, reverse=True)
    if option == SortOption.CATEGORY:
        return sorted(tasks, key=lambda t: t.category)
    if option == SortOption.STATUS:
        return sorted(tasks, key=lambda t: t.status)
    if option == SortOption.DUE_DATE:
        # Tasks without a due date go last
        return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or 0))
    return list(tasks)


def process_tasks(tasks: List[Task], options: ViewOptions) -> List[Task]:
    result = list(tasks)

    if options.search:
        result = [t for t in result if matches_search(t, options.search)]

    if options.project != ALL:
        result = [t for t in result if t.project == options.project]

    if options.category != ALL:
        result = [t for t in result if t.category == options.category]

    return sort_tasks(result, options.sort)


def _distinct(values) -> List[str]:
    seen = [ALL]
    for v in values:
        if v and v not in seen:
            seen.append(v)
    return seen


def unique_projects(tasks: List[Task]) -> List[str]:
    """Project-label filter choices, "All" first."""
    return _distinct(t.project for t in tasks)


def unique_categories(tasks: List[Task]) -> List[str]:
    """Category filter choices, "All" first."""
    return _distinct(t.category for t in tasks)


def tasks_by_column(tasks: List[Task], columns: List[Column]) -> Dict[str, List[Task]]:
    """Group tasks under their column, in column order. Orphaned tasks are not shown."""
    board = {c.id: [] for c in columns}
    for t in tasks:
        if t.status in board:
            board[t.status].append(t)
    return board


# ── Card/table helpers ───────────────────────────────────────────────────────


def initials(name: str) -> str:
    return "".join(word[0] for word in name.split(" ") if word).upper()[:2]


def status_label(status: str, columns: List[Column]) -> str:
    for c in columns:
        if c.id == status:
            return c.title
    return status


def subtask_progress(task: Task) -> tuple:
    """(completed, total) sub-task counts."""
    done = sum(1 for st in task.sub_tasks if st.is_completed)
    return done, len(task.sub_tasks)


def is_overdue(task: Task, now: Optional[int] = None) -> bool:
    if task.due_date is None or task.is_completed:
        return False
    return task.due_date < (now if now is not None else now_ms())


def table_rows(
    tasks: List[Task],
    columns: List[Column],
    settings: PrioritySettings,
    now: Optional[int] = None,
) -> List[dict]:
    """One display row per task, in the order given."""
    rows = []
    for t in tasks:
        done, total = subtask_progress(t)
        colour = settings.get(t.priority)
        rows.append({
            "id": t.id,
            "done": t.is_completed,
            "title": t.title,
            "description": t.description,
            "subtasks": f"{done}/{total}" if total else "",
            "assignee": t.assignee or "",
            "initials": initials(t.assignee) if t.assignee else "",
            "media": t.media or "",
            "status": status_label(t.status, columns),
            "priority": t.priority.value,
            "priority_colors": colour.to_dict() if colour else None,
            "due_date": t.due_date,
            "overdue": is_overdue(t, now),
            "category": t.category,
            "project": t.project,
        })
    return rows
