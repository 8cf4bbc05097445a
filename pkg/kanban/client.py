"""
Persistence adapter for the board.

Talks to the key-value HTTP service (kanban_server.py) with a short timeout
and keeps a local copy of every value it reads or writes. Dual-mode:

  get    → remote is authoritative; on timeout/error, last local copy
  save   → local first (always), then remote; remote failure is logged only
  delete → remote only, fire-and-forget

No retries, no conflict resolution: whichever side answers wins.
"""
import logging
from typing import Any, List, Optional
from urllib.parse import quote

import requests

from .config import Config
from .schema import (
    Column,
    PrioritySettings,
    Project,
    Task,
    PROJECTS_KEY,
    SETTINGS_KEY,
    columns_key,
    parse_record,
    settings_to_dict,
    tasks_key,
    wrap_record,
)
from .store import KVStore

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Raised when the key-value service cannot be reached or answers non-2xx."""
    pass


class RemoteStore:
    """Thin client for GET/POST/DELETE /api/data/<key>."""

    def __init__(self, base_url: str, timeout: float = 2.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='')}"

    def get(self, key: str) -> Any:
        try:
            r = requests.get(self._url(key), timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"GET {key} failed: {e}") from e
        if not r.ok:
            raise RemoteError(f"GET {key}: API error {r.status_code} {r.reason}")
        try:
            return r.json()
        except ValueError as e:
            raise RemoteError(f"GET {key}: invalid JSON body") from e

    def save(self, key: str, value: Any) -> None:
        try:
            r = requests.post(
                self._url(key),
                json=value,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(f"POST {key} failed: {e}") from e
        if not r.ok:
            raise RemoteError(f"POST {key}: API error {r.status_code} {r.reason}")

    def delete(self, key: str) -> None:
        try:
            r = requests.delete(self._url(key), timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteError(f"DELETE {key} failed: {e}") from e
        if not r.ok:
            raise RemoteError(f"DELETE {key}: API error {r.status_code} {r.reason}")


class HybridStore:
    """Remote store with a local cache fallback. Never raises."""

    def __init__(self, remote: RemoteStore, local: KVStore):
        self.remote = remote
        self.local = local

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.remote.get(key)
        except RemoteError as e:
            logger.warning(
                f"Remote fetch failed for {key} ({e}), falling back to local cache."
            )
            return self.local.load(key)

        # Keep the local copy fresh so a later outage serves the latest server data
        if data is not None:
            self.local.store(key, data)
        return data

    def save(self, key: str, data: Any) -> None:
        self.local.store(key, data)
        try:
            self.remote.save(key, data)
        except RemoteError as e:
            logger.warning(f"Remote save failed for {key} ({e}), data is stored locally only.")

    def delete(self, key: str) -> None:
        try:
            self.remote.delete(key)
            logger.info(f"Dropped data for key: {key}")
        except RemoteError as e:
            logger.warning(f"Remote delete failed for {key}: {e}")


class BoardDB:
    """Typed accessors over the hybrid store, one key per record kind."""

    def __init__(self, store: HybridStore):
        self.store = store

    @classmethod
    def from_config(cls, config: Config) -> "BoardDB":
        remote = RemoteStore(config.api_url, timeout=config.request_timeout)
        local = KVStore(config.cache_path)
        return cls(HybridStore(remote, local))

    # Projects
    def get_projects(self) -> Optional[List[Project]]:
        return parse_record(PROJECTS_KEY, self.store.get(PROJECTS_KEY))

    def save_projects(self, projects: List[Project]) -> None:
        self.store.save(PROJECTS_KEY, wrap_record([p.to_dict() for p in projects]))

    # Scoped by project id
    def get_tasks(self, project_id: str) -> Optional[List[Task]]:
        key = tasks_key(project_id)
        return parse_record(key, self.store.get(key))

    def save_tasks(self, project_id: str, tasks: List[Task]) -> None:
        self.store.save(tasks_key(project_id), wrap_record([t.to_dict() for t in tasks]))

    def get_columns(self, project_id: str) -> Optional[List[Column]]:
        key = columns_key(project_id)
        return parse_record(key, self.store.get(key))

    def save_columns(self, project_id: str, columns: List[Column]) -> None:
        self.store.save(columns_key(project_id), wrap_record([c.to_dict() for c in columns]))

    # Global settings
    def get_settings(self) -> Optional[PrioritySettings]:
        return parse_record(SETTINGS_KEY, self.store.get(SETTINGS_KEY))

    def save_settings(self, settings: PrioritySettings) -> None:
        self.store.save(SETTINGS_KEY, wrap_record(settings_to_dict(settings)))

    def drop_project_data(self, project_id: str) -> None:
        """Permanently delete a project's task list and column configuration."""
        self.store.delete(tasks_key(project_id))
        self.store.delete(columns_key(project_id))
