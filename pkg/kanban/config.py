# Simplo Kanban: configuration
# Override endpoints and paths via config.yaml or environment variables.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).parent.parent.parent / "config.yaml"


@dataclass
class Config:
    """Runtime configuration for the board client and server."""

    # Remote key-value service
    api_url: str = "http://localhost:3000/api/data"
    request_timeout: float = 2.0   # seconds, reads and writes

    # Local cache (stands in for browser local storage)
    cache_path: str = "~/.local/share/simplo-kanban/cache.db"

    # Server-side database
    db_path: str = "~/.local/share/simplo-kanban/kanban.db"

    # AI assist
    gemini_api_key: str = ""
    gemini_model: str = "gemini-3-flash-preview"
    assist_timeout: float = 30.0

    def apply_env(self):
        """Environment variables win over file values."""
        self.api_url = os.environ.get("KANBAN_API_URL", self.api_url)
        self.cache_path = os.environ.get("KANBAN_CACHE", self.cache_path)
        self.db_path = os.environ.get("KANBAN_DB", self.db_path)
        self.gemini_api_key = (
            os.environ.get("GEMINI_API_KEY")
            or os.environ.get("API_KEY")
            or self.gemini_api_key
        )

    def resolve_paths(self):
        """Expand ~ in file paths."""
        self.cache_path = str(Path(self.cache_path).expanduser())
        self.db_path = str(Path(self.db_path).expanduser())
        self.api_url = self.api_url.rstrip("/")

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
            except Exception:
                cfg = cls()
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.resolve_paths()
        return cfg
