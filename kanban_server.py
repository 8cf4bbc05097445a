#!/usr/bin/env python3
"""
Simplo Kanban Server
--------------------
Key-value JSON API backing the Kanban board. Every value (project list,
settings, one task list and one column list per project) is stored as JSON
text under a string key in a single SQLite table.

Usage:
    python kanban_server.py
    python kanban_server.py --host 0.0.0.0 --port 3000 --db /path/to/kanban.db

API:
    GET    /api/data/<key>  → stored JSON value, or null if absent
    POST   /api/data/<key>  → JSON body upserted; { success: true }
    DELETE /api/data/<key>  → row removed; { success: true, message }
    GET    /health          → { status, db }

    503 while the store is not initialised, 500 on database errors.
"""

import json
import os
from typing import Optional

from flask import Flask, jsonify, request

from pkg.kanban.config import Config
from pkg.kanban.store import KVStore

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024  # task media may be inlined

store: Optional[KVStore] = None


def init_store(db_path: Optional[str] = None) -> KVStore:
    """Open (and create if needed) the key-value table."""
    global store
    if db_path is None:
        db_path = Config.load().db_path
    store = KVStore(db_path)
    app.logger.info(f"Table 'kv_store' ready in {db_path}")
    return store


def store_unavailable():
    return jsonify({"error": "Database not initialized"}), 503


@app.after_request
def allow_cross_origin(response):
    # The board UI is served from its own origin
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, DELETE, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/data/<path:key>", methods=["GET"])
def api_get(key):
    if store is None:
        return store_unavailable()
    try:
        return jsonify(store.get(key))
    except Exception as e:
        app.logger.error(f"Database read error for key {key}: {e}")
        return jsonify({"error": "Internal server error"}), 500


@app.route("/api/data/<path:key>", methods=["POST"])
def api_save(key):
    if store is None:
        return store_unavailable()
    try:
        value = json.loads(request.get_data(as_text=True))
    except ValueError:
        return jsonify({"error": "Request body must be JSON"}), 400
    try:
        store.put(key, value)
        return jsonify({"success": True})
    except Exception as e:
        app.logger.error(f"Database write error for key {key}: {e}")
        return jsonify({"error": "Internal server error"}), 500


@app.route("/api/data/<path:key>", methods=["DELETE"])
def api_delete(key):
    if store is None:
        return store_unavailable()
    try:
        store.delete(key)
        return jsonify({
            "success": True,
            "message": f"Data for {key} dropped successfully.",
        })
    except Exception as e:
        app.logger.error(f"Database delete error for key {key}: {e}")
        return jsonify({"error": "Internal server error"}), 500


@app.route("/health")
def health():
    return jsonify({"status": "ok", "db": store.db_path if store else None})


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Simplo Kanban Server")
    parser.add_argument("--host", default="0.0.0.0",
                        help="Bind address")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--db", help="Path to kanban.db (overrides KANBAN_DB env var)")
    parser.add_argument("--config", help="Path to config.yaml")
    args = parser.parse_args()

    if args.db:
        os.environ["KANBAN_DB"] = args.db

    config = Config.load(args.config)
    init_store(config.db_path)

    print(f"""
╔═══════════════════════════════════════╗
║  Simplo Kanban Server                 ║
╠═══════════════════════════════════════╣
║  URL:  http://{args.host}:{args.port:<20}║
║  DB:   {config.db_path:<31}║
╚═══════════════════════════════════════╝
""")

    app.run(host=args.host, port=args.port, debug=False, threaded=True)
