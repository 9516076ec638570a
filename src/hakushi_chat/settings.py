"""
Local settings: user id, display name, last room and backend URLs.

Stored as JSON at ~/.hakushi/config.json (override with HAKUSHI_CONFIG).
HAKUSHI_WS_URL / HAKUSHI_API_URL override the backend URLs at load time
without being written back.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

DEFAULT_WS_URL = "wss://hakushicyatto-backend.doliy4784.workers.dev"
DEFAULT_API_URL = "https://hakushicyatto-backend.doliy4784.workers.dev"
DEFAULT_USER_NAME = "User"
CONFIG_FILE = Path.home() / ".hakushi" / "config.json"

logger = logging.getLogger(__name__)


def new_room_id() -> str:
    """Short shareable room id: 8 lowercase hex chars."""
    return uuid.uuid4().hex[:8]


class Settings(BaseModel):
    user_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_name: str = DEFAULT_USER_NAME
    room: str = Field(default_factory=new_room_id)
    ws_url: str = DEFAULT_WS_URL
    api_url: str = DEFAULT_API_URL


class SettingsStore:
    def __init__(self, path: Optional[Path] = None):
        if path is None:
            env_path = os.environ.get("HAKUSHI_CONFIG")
            path = Path(env_path) if env_path else CONFIG_FILE
        self.path = path

    def load(self) -> Settings:
        """Read settings, falling back to fresh defaults for a missing or corrupt file.

        Generated ids are written back so they stay stable across runs.
        """
        try:
            settings = Settings.model_validate(json.loads(self.path.read_text()))
        except FileNotFoundError:
            settings = Settings()
            self.save(settings)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable settings at %s: %s", self.path, e)
            settings = Settings()
            self.save(settings)

        overrides = {}
        if os.environ.get("HAKUSHI_WS_URL"):
            overrides["ws_url"] = os.environ["HAKUSHI_WS_URL"]
        if os.environ.get("HAKUSHI_API_URL"):
            overrides["api_url"] = os.environ["HAKUSHI_API_URL"]
        return settings.model_copy(update=overrides) if overrides else settings

    def save(self, settings: Settings) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(settings.model_dump_json(indent=2))
        except OSError as e:
            logger.warning("Could not write settings to %s: %s", self.path, e)

    def update(self, **changes: str) -> Settings:
        """Load, apply ``changes`` and save. Env overrides are not persisted."""
        try:
            current = Settings.model_validate(json.loads(self.path.read_text()))
        except (FileNotFoundError, json.JSONDecodeError, ValidationError):
            current = Settings()
        updated = current.model_copy(update=changes)
        self.save(updated)
        return updated
