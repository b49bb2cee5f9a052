import os
import json
import shutil
from typing import Any, Dict, Optional

import yaml

from src.utils.logger import log


def deep_merge(source: Dict[str, Any], destination: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``destination`` recursively; lists and scalars are replaced."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(destination.get(key), dict):
            deep_merge(value, destination[key])
        else:
            destination[key] = value
    return destination


class ConfigManager:
    APP_NAME = "HardwareInventory"
    CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".hardware_inventory")
    CONFIG_FILENAME = "config.json"
    TABLES_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "hardware_tables.yaml")
    USER_TABLES_FILENAME = "hardware_tables.user.yaml"

    DEFAULT_CONFIG = {
        "preferred_source": "auto",       # "auto", "wmi", "powershell"
        "command_timeout_secs": 15,
        "use_nvidia_smi": True,
        "use_psutil_fallback": True,
        "log_level": "INFO",
    }

    VALID_SOURCES = ("auto", "wmi", "powershell")

    def __init__(self, config_dir: Optional[str] = None):
        self.config_dir = config_dir or self.CONFIG_DIR
        self.config_file = os.path.join(self.config_dir, self.CONFIG_FILENAME)
        self.config = self.load_config()

    def load_config(self):
        if not os.path.exists(self.config_dir):
            os.makedirs(self.config_dir, exist_ok=True)

        if not os.path.exists(self.config_file):
            self.save_config(self.DEFAULT_CONFIG)
            return self.DEFAULT_CONFIG.copy()

        try:
            with open(self.config_file, 'r', encoding="utf-8") as f:
                return json.load(f)
        except Exception as e:
            log.error(f"Failed to load config: {e}. Loading defaults.")
            return self.DEFAULT_CONFIG.copy()

    def save_config(self, config=None):
        if config is None:
            config = self.config

        # Keep the previous file around in case the new write is bad
        if os.path.exists(self.config_file):
            try:
                shutil.copy2(self.config_file, self.config_file + ".bak")
            except Exception as e:
                log.warning(f"Failed to backup config: {e}")

        try:
            with open(self.config_file, 'w', encoding="utf-8") as f:
                json.dump(config, f, indent=4)
        except Exception as e:
            log.error(f"Failed to save config: {e}")

    def get(self, key, default=None):
        return self.config.get(key, default)

    def set(self, key, value):
        self.config[key] = value
        self.save_config()

    def validate_config(self):
        """Ensure config structure is valid."""
        if not isinstance(self.config, dict):
            self.config = self.DEFAULT_CONFIG.copy()
            self.save_config()
            return

        changes = False

        for key, default_val in self.DEFAULT_CONFIG.items():
            if key not in self.config:
                self.config[key] = default_val
                changes = True

        if self.config.get("preferred_source") not in self.VALID_SOURCES:
            self.config["preferred_source"] = self.DEFAULT_CONFIG["preferred_source"]
            changes = True

        timeout = self.config.get("command_timeout_secs")
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            self.config["command_timeout_secs"] = self.DEFAULT_CONFIG["command_timeout_secs"]
            changes = True

        for flag in ("use_nvidia_smi", "use_psutil_fallback"):
            if not isinstance(self.config.get(flag), bool):
                self.config[flag] = self.DEFAULT_CONFIG[flag]
                changes = True

        if changes:
            log.info("Config repaired with default values.")
            self.save_config()

    def get_tables(self) -> Dict[str, Any]:
        """
        Loads the bundled lookup tables and deep-merges an optional
        ``hardware_tables.user.yaml`` from the config dir over them.
        """
        tables: Dict[str, Any] = {}
        try:
            with open(self.TABLES_FILE, "r", encoding="utf-8") as f:
                tables = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            log.error(f"Failed to load lookup tables: {e}")

        user_file = os.path.join(self.config_dir, self.USER_TABLES_FILENAME)
        if os.path.exists(user_file):
            try:
                with open(user_file, "r", encoding="utf-8") as f:
                    overrides = yaml.safe_load(f) or {}
                if isinstance(overrides, dict):
                    deep_merge(overrides, tables)
                    log.info(f"Applied lookup table overrides from {user_file}")
            except (OSError, yaml.YAMLError) as e:
                log.warning(f"Ignoring user lookup tables: {e}")
        return tables


config_manager = ConfigManager()
config_manager.validate_config()
