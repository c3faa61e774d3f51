"""
Configuration Manager - Handle patchpush settings persistence
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "PATCHPUSH_CONFIG_DIR"
TOKEN_ENV = "GITHUB_TOKEN"


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None
    _config_file = None

    def __init__(self, config_dir: str | os.PathLike | None = None):
        # Explicit argument, then environment, then ~/.patchpush
        config_dir = config_dir or os.environ.get(CONFIG_DIR_ENV) or os.path.expanduser("~/.patchpush")

        config_path = Path(config_dir)
        try:
            config_path.mkdir(parents=True, exist_ok=True)
            self._config_file = config_path / "config.json"
        except OSError as e:
            logger.warning("[ConfigManager] Cannot write to %s: %s", config_dir, e)
            self._config_file = None

        # Last resort: system temp dir
        if not self._config_file:
            tmp_dir = Path(tempfile.gettempdir()) / "patchpush"
            tmp_dir.mkdir(parents=True, exist_ok=True)
            self._config_file = tmp_dir / "config.json"
            logger.info("[ConfigManager] Using temporary config path: %s", self._config_file)

        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    @property
    def config_file(self) -> Path:
        return self._config_file

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        config = self._default_config()
        if self._config_file.exists():
            try:
                with open(self._config_file) as f:
                    stored = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.error("[ConfigManager] Error loading config: %s", e)
                stored = {}
            for key, value in stored.items():
                if isinstance(value, dict) and isinstance(config.get(key), dict):
                    config[key] = {**config[key], **value}
                else:
                    config[key] = value

        if not config["github"].get("token") and os.environ.get(TOKEN_ENV):
            config["github"]["token"] = os.environ[TOKEN_ENV]
        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "github": {
                "token": "",
                "apiBase": "https://api.github.com",
                "apiVersion": "2022-11-28",
                "maxRetries": 3,
                "timeoutSeconds": 30,
                "rateLimitWarnThreshold": 100,
            },
            "patch": {
                "maxFileSize": 2000,
                "commitMessagePrefix": "Apply patch",
                "strategy": "sequential",
                "strictContext": False,
            },
            "server": {"host": "0.0.0.0", "port": 8000},
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        # Reload config from file to ensure we have the latest
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        self._config.update(config)

        self._config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._config_file, "w") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")

    def get(self, key: str, default=None):
        """Get specific config value"""
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Set specific config value"""
        self._config[key] = value
        self.save_config(self._config)
