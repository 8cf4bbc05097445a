"""
Tests for the board controller and AI assist.
"""
from unittest.mock import patch, MagicMock

import pytest
import requests

from pkg.kanban.app import KanbanApp
from pkg.kanban.assist import (
    AssistError,
    TaskAssistant,
    apply_suggestion,
    build_prompt,
    parse_suggestion,
)
from pkg.kanban.config import Config
from pkg.kanban.dnd import DragEnd, DragType
from pkg.kanban.schema import Priority, SortOption, SubTask, wrap_record
from pkg.kanban.seed import SEED_PROJECT_ID, default_priority_settings

from conftest import make_task


@pytest.fixture
def app(db):
    kanban = KanbanApp(db)
    kanban.start()
    return kanban


@pytest.fixture
def board(app):
    project = app.create_project("Work")
    app.open_project(project.id)
    return app


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Startup / projects
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_first_start_installs_seed_project(app, remote):
    assert [p.id for p in app.state.projects] == [SEED_PROJECT_ID]
    assert f"tasks_{SEED_PROJECT_ID}" in remote.data
    assert f"columns_{SEED_PROJECT_ID}" in remote.data

    assert app.open_project(SEED_PROJECT_ID)
    assert len(app.state.tasks) == 5
    assert [c.id for c in app.state.columns] == ["Draft", "To Do", "On Going", "Complete"]


def test_start_loads_existing_projects_and_settings(db, remote):
    settings = default_priority_settings()
    settings[Priority.LOW].bg = "#123456"
    db.save_settings(settings)
    remote.data["kanban_projects"] = wrap_record([{"id": "p1", "name": "Mine", "createdAt": 1}])

    kanban = KanbanApp(db)
    kanban.start()
    assert [p.name for p in kanban.state.projects] == ["Mine"]
    assert kanban.state.priority_settings[Priority.LOW].bg == "#123456"
    assert f"tasks_{SEED_PROJECT_ID}" not in remote.data


def test_start_offline_uses_local_cache(db, remote):
    KanbanApp(db).start()
    remote.down = True

    kanban = KanbanApp(db)
    kanban.start()
    assert [p.id for p in kanban.state.projects] == [SEED_PROJECT_ID]


def test_open_project_falls_back_to_template_columns(app, remote):
    project = app.create_project("Empty")
    remote.data.pop(f"columns_{project.id}")

    assert app.open_project(project.id)
    assert [c.id for c in app.state.columns] == ["Draft", "To Do", "On Going", "Complete"]
    assert app.state.tasks == []
    saved = remote.data[f"columns_{project.id}"]["data"]
    assert [c["id"] for c in saved] == ["Draft", "To Do", "On Going", "Complete"]
    assert not app.open_project("missing")


def test_edit_project(app, remote):
    project = app.create_project("Work")
    assert app.edit_project(project.id, "Work (renamed)", "desc")
    saved = remote.data["kanban_projects"]["data"]
    assert saved[-1]["name"] == "Work (renamed)"
    assert not app.edit_project("missing", "x")


def test_delete_project_drops_data(app, remote):
    project = app.create_project("Temp")
    assert app.delete_project(project.id)

    assert f"tasks_{project.id}" not in remote.data
    assert f"columns_{project.id}" not in remote.data
    assert project.id not in [p["id"] for p in remote.data["kanban_projects"]["data"]]


def test_declined_confirmation_keeps_project(db, remote):
    kanban = KanbanApp(db, confirm=lambda message: False)
    kanban.start()
    assert not kanban.delete_project(SEED_PROJECT_ID)
    assert len(kanban.state.projects) == 1
    assert remote.deleted == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tasks / columns
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _saved_tasks(remote, app):
    return remote.data[f"tasks_{app.state.current_project_id}"]["data"]


def test_task_changes_are_persisted(board, remote):
    task = board.create_task("Write report", priority=Priority.HIGH)
    assert _saved_tasks(remote, board)[0]["priority"] == "High"

    board.toggle_task(task.id)
    assert _saved_tasks(remote, board)[0]["isCompleted"] is True

    board.move_task(task.id, "Complete")
    assert _saved_tasks(remote, board)[0]["status"] == "Complete"

    assert board.delete_task(task.id)
    assert _saved_tasks(remote, board) == []


def test_task_operations_need_open_project(app):
    with pytest.raises(RuntimeError):
        app.create_task("Nowhere")


def test_delete_column_migrates_and_persists(board, remote):
    task = board.create_task("Stuck", status="On Going")

    assert board.delete_column("On Going")
    assert board.state.find_task(task.id).status == "Draft"
    assert _saved_tasks(remote, board)[0]["status"] == "Draft"
    columns = remote.data[f"columns_{board.state.current_project_id}"]["data"]
    assert [c["id"] for c in columns] == ["Draft", "To Do", "Complete"]


def test_delete_last_column_rejected(board):
    for column_id in ["Draft", "To Do", "On Going"]:
        assert board.delete_column(column_id)
    assert not board.delete_column("Complete")
    assert [c.id for c in board.state.columns] == ["Complete"]


def test_add_and_update_column(board, remote):
    column = board.add_column("Review", "#ff00ff")
    column.title = "QA"
    assert board.update_column(column)
    columns = remote.data[f"columns_{board.state.current_project_id}"]["data"]
    assert columns[-1] == {"id": column.id, "title": "QA", "color": "#ff00ff"}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drag and drop / views
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_drag_task_onto_card(board):
    mover = board.create_task("Mover", status="To Do")
    target = board.create_task("Target", status="On Going")

    event = DragEnd(active_id=mover.id, active_type=DragType.TASK, over_id=target.id)
    assert board.handle_drag_end(event)
    assert board.state.find_task(mover.id).status == "On Going"

    # Same drop again is a no-op
    assert not board.handle_drag_end(event)


def test_drag_disabled_while_sorted(board):
    task = board.create_task("Mover", status="To Do")
    board.set_view(sort=SortOption.PRIORITY)

    event = DragEnd(active_id=task.id, active_type=DragType.TASK, over_id="Complete")
    assert not board.handle_drag_end(event)
    assert board.state.find_task(task.id).status == "To Do"

    board.set_view(sort=SortOption.NONE)
    assert board.handle_drag_end(event)


def test_drag_column_persists_order(board, remote):
    event = DragEnd(active_id="Complete", active_type=DragType.COLUMN, over_id="Draft")
    assert board.handle_drag_end(event)
    columns = remote.data[f"columns_{board.state.current_project_id}"]["data"]
    assert [c["id"] for c in columns] == ["Complete", "Draft", "To Do", "On Going"]


def test_views(board):
    board.create_task("Fix bug", category="Backend", project="Core")
    board.create_task("Bug fixing", category="Backend", project="Site", status="Complete")
    board.create_task("Feature X", category="Design", project="Core")

    board.set_view(search="bug")
    assert [t.title for t in board.visible_tasks()] == ["Fix bug", "Bug fixing"]
    assert [t.title for t in board.board()["Draft"]] == ["Fix bug"]
    assert [r["status"] for r in board.table()] == ["DRAFT", "COMPLETE"]

    assert board.filter_choices() == {
        "projects": ["All", "Core", "Site"],
        "categories": ["All", "Backend", "Design"],
    }

    board.close_project()
    assert board.view.search == ""


def test_priority_settings_persisted(app, remote):
    settings = default_priority_settings()
    settings[Priority.HIGH].text = "#000000"
    app.update_priority_settings(settings)
    assert remote.data["kanban_settings"]["data"]["High"]["text"] == "#000000"

    app.reset_priority_settings()
    assert remote.data["kanban_settings"]["data"]["High"]["text"] == "#991b1b"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# AI assist
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _gemini_response(text):
    r = MagicMock()
    r.raise_for_status.return_value = None
    r.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    return r


SUGGESTION = (
    '{"description": "Ship the login fix", "category": "Backend", '
    '"priority": "High", "subTasks": ["Reproduce", "Patch", "Test"]}'
)


def test_build_prompt():
    prompt = build_prompt("Fix login", "users locked out")
    assert '"Fix login"' in prompt
    assert '"users locked out"' in prompt


def test_parse_suggestion():
    result = parse_suggestion("```json\n" + SUGGESTION + "\n```")
    assert result["priority"] == Priority.HIGH
    assert result["subTasks"] == ["Reproduce", "Patch", "Test"]

    partial = parse_suggestion('{"priority": "Urgent", "category": "Ops"}')
    assert partial == {"category": "Ops"}

    with pytest.raises(AssistError):
        parse_suggestion("not json")
    with pytest.raises(AssistError):
        parse_suggestion("[1, 2]")


def test_apply_suggestion_appends_subtasks():
    task = make_task("t1", sub_tasks=[SubTask("s0", "Existing")])
    apply_suggestion(task, parse_suggestion(SUGGESTION))

    assert task.description == "Ship the login fix"
    assert task.category == "Backend"
    assert task.priority == Priority.HIGH
    assert [st.title for st in task.sub_tasks] == ["Existing", "Reproduce", "Patch", "Test"]
    assert not any(st.is_completed for st in task.sub_tasks)


@patch("pkg.kanban.assist.requests.post")
def test_assistant_request(mock_post):
    mock_post.return_value = _gemini_response(SUGGESTION)
    assistant = TaskAssistant("key-123", model="test-model", timeout=5)

    result = assistant.suggest("Fix login", "")
    assert result["category"] == "Backend"

    args, kwargs = mock_post.call_args
    assert args[0].endswith("/models/test-model:generateContent")
    assert kwargs["headers"] == {"x-goog-api-key": "key-123"}
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["generationConfig"]["responseMimeType"] == "application/json"


@patch("pkg.kanban.assist.requests.post")
def test_assistant_failures(mock_post):
    assistant = TaskAssistant("key-123")

    mock_post.side_effect = requests.ConnectionError("offline")
    with pytest.raises(AssistError):
        assistant.suggest("Fix login")

    mock_post.side_effect = None
    mock_post.return_value = MagicMock(json=MagicMock(return_value={"candidates": []}))
    with pytest.raises(AssistError):
        assistant.suggest("Fix login")

    with pytest.raises(AssistError):
        TaskAssistant("").suggest("Fix login")


def test_assist_task_applies_and_persists(board, remote):
    task = board.create_task("Fix login")
    board.assistant = MagicMock()
    board.assistant.suggest.return_value = parse_suggestion(SUGGESTION)

    updated = board.assist_task(task.id)
    assert updated.category == "Backend"
    assert len(_saved_tasks(remote, board)[0]["subTasks"]) == 3


def test_assist_failure_leaves_task_untouched(board):
    task = board.create_task("Fix login", description="original")
    board.assistant = MagicMock()
    board.assistant.suggest.side_effect = AssistError("quota exceeded")

    with pytest.raises(AssistError):
        board.assist_task(task.id)
    assert board.state.find_task(task.id).description == "original"
    assert board.state.find_task(task.id).sub_tasks == []


def test_assist_without_key(board):
    task = board.create_task("Fix login")
    with pytest.raises(AssistError):
        board.assist_task(task.id)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_config_load(tmp_path, monkeypatch):
    monkeypatch.delenv("KANBAN_API_URL", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setenv("KANBAN_DB", str(tmp_path / "server.db"))

    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("api_url: http://kv:9000/api/data/\nrequest_timeout: 1.5\nbogus: 1\n")

    cfg = Config.load(str(cfg_file))
    assert cfg.api_url == "http://kv:9000/api/data"
    assert cfg.request_timeout == 1.5
    assert cfg.db_path == str(tmp_path / "server.db")
    assert cfg.gemini_api_key == ""

    missing = Config.load(str(tmp_path / "nope.yaml"))
    assert missing.api_url == "http://localhost:3000/api/data"
