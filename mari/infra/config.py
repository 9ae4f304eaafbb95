"""
Configuration management using Pydantic Settings.

Sources, lowest priority first:
1. Defaults on Settings and UserPreferences
2. settings.yaml (./config/settings.yaml in a checkout, else the user's
   config directory)
3. .env, then MARI_* environment variables
4. Keyword arguments to Settings()
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type
import yaml

from pydantic_settings import (
    BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, YamlConfigSettingsSource
)
from mari.domain.models import UserPreferences

logger = logging.getLogger(__name__)

APP_NAME = "Mari"
CONFIG_FILENAME = "settings.yaml"


def _platform_dir(kind: str, app_name: str) -> Path:
    """Per-user directory for 'config' or 'data' files"""
    if sys.platform == "darwin":
        # Menu-bar apps keep both under Application Support
        return Path.home() / "Library" / "Application Support" / app_name
    if os.name == "nt":
        return Path(os.getenv("APPDATA", Path.home())) / app_name
    if kind == "config":
        base = os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config"
    else:
        base = os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(base) / app_name.lower()


def config_file_path(config_dir: Path) -> Path:
    """./config/settings.yaml if present, else the one in `config_dir`"""
    local = Path("config") / CONFIG_FILENAME
    if local.exists():
        return local
    return Path(config_dir) / CONFIG_FILENAME


class PreferencesYamlSource(YamlConfigSettingsSource):
    """
    settings.yaml holds UserPreferences keys at the top level; they are
    nested under `preferences` here. Unknown keys are ignored.
    """

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        known = {k: v for k, v in data.items() if k in UserPreferences.model_fields}
        logger.info(f"Loaded preferences from {file_path}")
        return {"preferences": known}


class Settings(BaseSettings):
    """
    Process settings plus the user's preferences.

    Only the preferences live in the YAML file; paths and the database URL
    come from the environment.
    """
    model_config = SettingsConfigDict(
        env_prefix='MARI_',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    app_name: str = APP_NAME
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None
    database_filename: str = "mari-time.db"

    preferences: UserPreferences = UserPreferences()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The YAML location depends on config_dir, which may itself come
        # from the keyword arguments or the environment
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        app_name = init_kwargs.get("app_name") or os.getenv("MARI_APP_NAME") or APP_NAME
        config_dir = (
            init_kwargs.get("config_dir")
            or os.getenv("MARI_CONFIG_DIR")
            or _platform_dir("config", app_name)
        )
        yaml_settings = PreferencesYamlSource(settings_cls, yaml_file=config_file_path(config_dir))
        return init_settings, env_settings, dotenv_settings, yaml_settings, file_secret_settings

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.config_dir = self.config_dir or _platform_dir("config", self.app_name)
        self.data_dir = self.data_dir or _platform_dir("data", self.app_name)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def config_file(self) -> Path:
        return config_file_path(self.config_dir)

    def save_preferences(self) -> Path:
        """Write preferences to the user's config directory"""
        path = self.config_dir / CONFIG_FILENAME
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.preferences.model_dump(), f, default_flow_style=False)
        return path

    def get_db_url(self) -> str:
        """MARI_DATABASE_URL if set, else a SQLite file in the data directory"""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / self.database_filename}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment and the YAML file"""
    global _settings
    _settings = Settings()
    return _settings
