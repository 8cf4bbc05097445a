"""
Kanban board schema: projects, columns, tasks, sub-tasks, priority colours.

Wire format is camelCase JSON (the shape the browser front end and the
key-value service exchange). Timestamps are epoch milliseconds.

Persisted records are wrapped in a versioned envelope:
    {"version": 1, "data": <value>}
Bare values written by older clients are read as version 0.
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
import logging
import math
import time
import uuid

logger = logging.getLogger(__name__)

RECORD_VERSION = 1


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class RecordError(ValueError):
    """Raised when a persisted record does not match its expected shape."""
    pass


class Priority(Enum):
    """Task priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class SortOption(Enum):
    """Sort keys offered by the board toolbar."""
    DATE = "date"
    PRIORITY = "priority"
    CATEGORY = "category"
    STATUS = "status"
    DUE_DATE = "dueDate"
    NONE = "none"


def _require(data: Dict[str, Any], key: str, kind, record: str):
    if not isinstance(data, dict):
        raise RecordError(f"{record}: expected object, got {type(data).__name__}")
    if key not in data:
        raise RecordError(f"{record}: missing '{key}'")
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool) and kind is not bool:
        raise RecordError(f"{record}: '{key}' has wrong type {type(value).__name__}")
    return value


def _optional(data: Dict[str, Any], key: str, kind, record: str, default=None):
    """Like _require, but an absent or null value yields default."""
    if data.get(key) is None:
        return default
    return _require(data, key, kind, record)


def _timestamp(value, key: str, record: str) -> int:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise RecordError(f"{record}: '{key}' must be a number")
    if not math.isfinite(value):
        raise RecordError(f"{record}: '{key}' is not a finite number")
    return int(value)


@dataclass
class Column:
    """A workflow stage on the board."""
    id: str
    title: str
    color: str = "#94a3b8"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        return cls(
            id=_require(data, "id", str, "column"),
            title=_require(data, "title", str, "column"),
            color=_optional(data, "color", str, "column") or "#94a3b8",
        )


@dataclass
class SubTask:
    id: str
    title: str
    is_completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "isCompleted": self.is_completed}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubTask":
        return cls(
            id=_require(data, "id", str, "subtask"),
            title=_require(data, "title", str, "subtask"),
            is_completed=bool(data.get("isCompleted", False)),
        )


@dataclass
class Task:
    """A card on the board. `status` holds the id of the column it sits in."""

    id: str
    title: str
    description: str = ""
    status: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = "General"
    project: str = "Main Project"   # free-text label, not the owning Project
    is_completed: bool = False
    created_at: int = field(default_factory=now_ms)
    due_date: Optional[int] = None
    media: Optional[str] = None     # URL or data URI
    assignee: Optional[str] = None
    sub_tasks: List[SubTask] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority.value,
            "category": self.category,
            "project": self.project,
            "isCompleted": self.is_completed,
            "createdAt": self.created_at,
            "dueDate": self.due_date,
            "subTasks": [st.to_dict() for st in self.sub_tasks],
        }
        if self.media:
            data["media"] = self.media
        if self.assignee:
            data["assignee"] = self.assignee
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from dict. Raises RecordError on a malformed record."""
        priority_raw = _require(data, "priority", str, "task")
        try:
            priority = Priority(priority_raw)
        except ValueError:
            raise RecordError(f"task: unknown priority '{priority_raw}'")

        due_date = data.get("dueDate")
        if due_date is not None:
            due_date = _timestamp(due_date, "dueDate", "task")

        sub_tasks = _optional(data, "subTasks", list, "task", [])

        return cls(
            id=_require(data, "id", str, "task"),
            title=_require(data, "title", str, "task"),
            description=_optional(data, "description", str, "task", ""),
            status=_require(data, "status", str, "task"),
            priority=priority,
            category=_optional(data, "category", str, "task", ""),
            project=_optional(data, "project", str, "task", ""),
            is_completed=bool(data.get("isCompleted", False)),
            created_at=_timestamp(data.get("createdAt"), "createdAt", "task"),
            due_date=due_date,
            media=_optional(data, "media", str, "task") or None,
            assignee=_optional(data, "assignee", str, "task") or None,
            sub_tasks=[SubTask.from_dict(st) for st in sub_tasks],
        )


@dataclass
class Project:
    """An isolated workspace with its own tasks and columns."""
    id: str
    name: str
    description: str = ""
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        project = cls(
            id=_require(data, "id", str, "project"),
            name=_require(data, "name", str, "project"),
            description=_optional(data, "description", str, "project", ""),
        )
        if data.get("createdAt") is not None:
            project.created_at = _timestamp(data["createdAt"], "createdAt", "project")
        return project


@dataclass
class PriorityColor:
    bg: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"bg": self.bg, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriorityColor":
        return cls(
            bg=_require(data, "bg", str, "priority colour"),
            text=_require(data, "text", str, "priority colour"),
        )


PrioritySettings = Dict[Priority, PriorityColor]


def settings_to_dict(settings: PrioritySettings) -> Dict[str, Dict[str, str]]:
    return {p.value: settings[p].to_dict() for p in Priority if p in settings}


def settings_from_dict(data: Dict[str, Any]) -> PrioritySettings:
    if not isinstance(data, dict):
        raise RecordError("settings: expected object")
    settings = {}
    for p in Priority:
        if p.value not in data:
            raise RecordError(f"settings: missing colours for '{p.value}'")
        settings[p] = PriorityColor.from_dict(data[p.value])
    return settings


# ── Versioned records ────────────────────────────────────────────────────────


def wrap_record(value: Any) -> Dict[str, Any]:
    """Wrap a JSON value in the current record envelope."""
    return {"version": RECORD_VERSION, "data": value}


def unwrap_record(raw: Any) -> Any:
    """Return the payload of a persisted record, accepting bare legacy values."""
    if isinstance(raw, dict) and "version" in raw and "data" in raw:
        if raw["version"] != RECORD_VERSION:
            raise RecordError(f"unsupported record version {raw['version']!r}")
        return raw["data"]
    return raw


def _parse_list(raw: Any, item_cls, record: str) -> list:
    payload = unwrap_record(raw)
    if not isinstance(payload, list):
        raise RecordError(f"{record}: expected list, got {type(payload).__name__}")
    return [item_cls.from_dict(item) for item in payload]


def parse_record(key: str, raw: Any):
    """
    Validate a persisted value against the record kind its key names.

    Returns the typed value, or None when the value is absent or invalid.
    Invalid values are logged, never raised.
    """
    if raw is None:
        return None
    try:
        if key == PROJECTS_KEY:
            return _parse_list(raw, Project, "projects")
        if key == SETTINGS_KEY:
            return settings_from_dict(unwrap_record(raw))
        if key.startswith(TASKS_PREFIX):
            return _parse_list(raw, Task, "tasks")
        if key.startswith(COLUMNS_PREFIX):
            return _parse_list(raw, Column, "columns")
        raise RecordError(f"no record kind for key '{key}'")
    except RecordError as e:
        logger.warning(f"Discarding invalid record for {key}: {e}")
        return None


# ── Storage keys ─────────────────────────────────────────────────────────────

PROJECTS_KEY = "kanban_projects"
SETTINGS_KEY = "kanban_settings"
TASKS_PREFIX = "tasks_"
COLUMNS_PREFIX = "columns_"


def tasks_key(project_id: str) -> str:
    return f"{TASKS_PREFIX}{project_id}"


def columns_key(project_id: str) -> str:
    return f"{COLUMNS_PREFIX}{project_id}"
