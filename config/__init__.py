import importlib
import os
from types import ModuleType
from typing import Optional

_ENV_MODULES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    """Settings module for APP_ENV; anything unrecognised runs as development."""
    return _ENV_MODULES.get(os.getenv("APP_ENV", "development").lower(), "config.development")


def load_settings(settings_module: Optional[str] = None) -> ModuleType:
    return importlib.import_module(settings_module or get_settings_module())


def describe_db(db_config: dict) -> str:
    """user@host:port/database, for log lines and script output."""
    return (
        f"{db_config.get('user')}@{db_config.get('host')}:"
        f"{db_config.get('port', 3306)}/{db_config.get('database')}"
    )
