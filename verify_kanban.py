#!/usr/bin/env python3
"""
Quick verification that the board works end-to-end against whatever
server is configured. With no server running everything still works from
the local cache; the warnings in the log show the fallback.
"""
import logging
import tempfile
from pathlib import Path

from pkg.kanban.app import KanbanApp
from pkg.kanban.config import Config
from pkg.kanban.dnd import DragEnd, DragType
from pkg.kanban.schema import Priority, SortOption


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Simplo Kanban Verification")
    print("=" * 60)

    config = Config.load()
    config.cache_path = str(Path(tempfile.mkdtemp()) / "cache.db")

    print(f"\n[1/6] Starting board (API: {config.api_url})...")
    app = KanbanApp.from_config(config)
    app.start()
    print(f"✅ {len(app.state.projects)} project(s) loaded")

    print("\n[2/6] Creating a project...")
    project = app.create_project("Verification", "End-to-end check")
    app.open_project(project.id)
    print(f"✅ Project {project.id} with columns: {[c.id for c in app.state.columns]}")

    print("\n[3/6] Creating tasks...")
    fix = app.create_task("Fix login bug", priority=Priority.HIGH, category="Backend")
    app.create_task("Write docs", priority=Priority.LOW, category="Docs")
    print(f"✅ {len(app.state.tasks)} tasks in {app.state.columns[0].title}")

    print("\n[4/6] Dragging a card to ON GOING...")
    app.handle_drag_end(DragEnd(active_id=fix.id, active_type=DragType.TASK, over_id="On Going"))
    print(f"   → Status: {app.state.find_task(fix.id).status}")

    print("\n[5/6] Deleting the ON GOING column...")
    app.delete_column("On Going")
    print(f"   → Status after migration: {app.state.find_task(fix.id).status}")

    print("\n[6/6] Sorted by priority...")
    app.set_view(sort=SortOption.PRIORITY)
    for row in app.table():
        print(f"   {row['priority']:<7} {row['title']} [{row['status']}]")

    app.delete_project(project.id)

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    main()
