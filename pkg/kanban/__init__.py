# Kanban board: projects, columns, tasks, and a key-value persistence layer
#
# Components:
#   schema.py - Data model (Project, Column, Task, SubTask, Priority) and record validation
#   store.py  - SQLite key-value table (server database and local cache)
#   client.py - Persistence adapter: remote key-value service with local fallback
#   board.py  - Board state and its transitions
#   dnd.py    - Drag-and-drop move resolution
#   views.py  - Search/filter/sort pipeline and board/table views
#   app.py    - Controller tying state, persistence and confirmations together
#   assist.py - AI-assisted task details (Gemini)
#   seed.py   - Template columns, default colours, welcome project
#   config.py - YAML/env configuration
