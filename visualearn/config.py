#!/usr/bin/env python3
"""
VisuaLearn Configuration - Persistent application settings.

This module stores the Gemini API key, the window geometry and the model
candidate lists in a JSON file, with environment-variable overrides for the key.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .colors import Colors
from .providers.gemini_provider import DEFAULT_CHAT_MAX_OUTPUT_TOKENS, TEXT_MODEL_NAMES, VISION_MODEL_NAMES

API_KEY_ENV_VAR = "GEMINI_API_KEY"

DEFAULT_CONFIG: Dict[str, Any] = {
    "api_key": "",
    "window_position": {"x": None, "y": None},
    "window_size": {"width": 500, "height": 700},
    "text_models": list(TEXT_MODEL_NAMES),
    "vision_models": list(VISION_MODEL_NAMES),
    "chat_max_output_tokens": DEFAULT_CHAT_MAX_OUTPUT_TOKENS,
    "log_level": "WARNING",
}


class Config:
    """Configuration manager for VisuaLearn."""

    DEFAULT_CONFIG_FILE = "visualearn_config.json"

    def __init__(self, config_file: Optional[Union[str, Path]] = None, override_api_key: Optional[str] = None,
                 quiet: bool = False):
        """Initialize the configuration manager.

        Args:
            config_file: Path to the configuration file. If None, uses default.
            override_api_key: API key that takes precedence over environment and file, primarily for CLI.
            quiet: Suppress informational messages during load/save.
        """
        self.config_file = Path(config_file) if config_file else self._get_default_config_path()
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self.override_api_key = override_api_key
        self.quiet = quiet
        self.load_config()

    def _get_default_config_path(self) -> Path:
        """Gets the default path for the configuration file."""
        return Path.home() / ".visualearn" / self.DEFAULT_CONFIG_FILE

    def _print(self, message: str, color: str) -> None:
        print(f"{color}{message}{Colors.ENDC}")

    def load_config(self) -> Dict[str, Any]:
        """Loads the configuration from the JSON file.

        Returns:
            The loaded configuration dictionary.
        """
        if not self.config_file.exists():
            if not self.quiet:
                self._print(f"Configuration file not found at {self.config_file}. "
                            f"Using default settings. It will be created on save.", Colors.WARNING)
            return self.config

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded_config = json.load(f)
            if not isinstance(loaded_config, dict):
                raise ValueError("top-level value is not an object")
        except (OSError, ValueError) as e:
            self._print(f"Error loading configuration from {self.config_file}: {e}. Using defaults.", Colors.FAIL)
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return self.config

        # Nested objects (window_position, window_size) are merged key by key
        for key, value in loaded_config.items():
            if isinstance(value, dict) and isinstance(self.config.get(key), dict):
                self.config[key].update(value)
            else:
                self.config[key] = value

        if not self.quiet:
            self._print(f"Configuration loaded from {self.config_file}", Colors.GREEN)
        return self.config

    def save_config(self) -> bool:
        """Saves the current configuration to the JSON file.

        Returns:
            True if saving was successful, False otherwise.
        """
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
        except OSError as e:
            self._print(f"Error saving configuration to {self.config_file}: {e}", Colors.FAIL)
            return False
        if not self.quiet:
            self._print(f"Configuration saved to {self.config_file}", Colors.GREEN)
        return True

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Gets a configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Sets a configuration value. Does not automatically save."""
        self.config[key] = value

    def get_api_key(self) -> Optional[str]:
        """Gets the Gemini API key, checking the override, environment, then config.

        Returns:
            The API key string if found, otherwise None.
        """
        if self.override_api_key:
            return self.override_api_key
        api_key_env = os.environ.get(API_KEY_ENV_VAR)
        if api_key_env:
            return api_key_env
        return self.config.get("api_key") or None

    def set_api_key(self, api_key: str) -> bool:
        """Stores the API key and saves the configuration.

        Returns:
            True if the key was persisted.
        """
        self.config["api_key"] = api_key
        # A key entered interactively replaces any CLI override for the session
        self.override_api_key = None
        return self.save_config()

    def get_window_position(self) -> Dict[str, Optional[int]]:
        return dict(self.config.get("window_position") or DEFAULT_CONFIG["window_position"])

    def set_window_position(self, x: int, y: int) -> bool:
        self.config["window_position"] = {"x": x, "y": y}
        return self.save_config()

    def get_window_size(self) -> Dict[str, int]:
        return dict(self.config.get("window_size") or DEFAULT_CONFIG["window_size"])

    def set_window_size(self, width: int, height: int) -> bool:
        self.config["window_size"] = {"width": width, "height": height}
        return self.save_config()

    def get_model_candidates(self, kind: str) -> List[str]:
        """Gets the ordered model identifiers to probe for ``kind`` ('text' or 'vision')."""
        key = f"{kind}_models"
        candidates = self.config.get(key)
        if not candidates or not isinstance(candidates, list):
            return list(DEFAULT_CONFIG[key])
        return [str(name) for name in candidates]
