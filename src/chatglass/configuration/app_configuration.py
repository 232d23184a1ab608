from __future__ import annotations
import os
from pathlib import Path
import fcntl
from typing import Any, Dict, Tuple
import yaml

from chatglass.configuration.moderation_settings import ModerationSettings
from chatglass.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("CHATGLASS_CONFIG", "./config/app_config.yml")).resolve()

DEFAULT_CONSOLE_USER: Tuple[str, int] = ("operator", 1)


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` (or the file named
    by ``CHATGLASS_CONFIG``), exposes dictionary-like access helpers, and
    resolves moderation settings through :class:`ModerationSettings`.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping, ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the convenience
        properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def moderation_settings(self) -> ModerationSettings:
        """Return the ``moderation`` section wrapped in a ModerationSettings helper."""
        settings = self._data.get("moderation", {})
        if not isinstance(settings, dict):
            settings = {}
        return ModerationSettings(settings)

    @property
    def console_user(self) -> Tuple[str, int]:
        """Return the (name, id) of the user driven from the console."""
        console = self._data.get("console", {})
        if not isinstance(console, dict):
            return DEFAULT_CONSOLE_USER
        user = console.get("user", {})
        if not isinstance(user, dict):
            return DEFAULT_CONSOLE_USER
        name = str(user.get("name") or DEFAULT_CONSOLE_USER[0])
        try:
            user_id = int(user.get("id", DEFAULT_CONSOLE_USER[1]))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid console user id %r, using default.", user.get("id"))
            user_id = DEFAULT_CONSOLE_USER[1]
        return name, user_id


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
