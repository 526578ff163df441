# -*- coding: utf-8 -*-

"""
User settings stored as YAML in the platform config directory.
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import platformdirs

from .misc import mask_path, read_yaml, write_yaml


DEFAULT_CONTENT_MODEL = "gemini-2.5-flash"
DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"

SUPPORTED_MODELS = (
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash-exp",
    "gemini-embedding-001",
)


@dataclass
class Settings:
    """Defaults used by the manager and the CLI when an option is omitted."""
    content_model: str = DEFAULT_CONTENT_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    poll_interval_seconds: float = 30
    max_wait_seconds: float = 24 * 60 * 60
    output_location: str = "."

    def __post_init__(self):
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive.")
        if self.max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be positive.")
        for model in (self.content_model, self.embedding_model):
            if model not in SUPPORTED_MODELS:
                logging.warning(f"Model '{model}' is not in the list of known models: {SUPPORTED_MODELS}")

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]):
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logging.warning(f"Ignoring unknown settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


def get_settings_path() -> Path:
    """Get the platform-specific settings path."""
    config_dir = platformdirs.user_config_dir("gemini-batch-manager")
    return Path(config_dir) / "settings.yaml"


def load_settings(path=None) -> Settings:
    """
    Load settings from a YAML file. A missing file yields the defaults.

    Args:
        path (str, optional): Settings file. Defaults to `get_settings_path()`.

    Raises:
        ValueError: If a setting has an invalid value.
    """
    path = Path(path) if path else get_settings_path()
    if not path.exists():
        logging.debug(f"No settings file at {mask_path(path)}, using defaults")
        return Settings()
    settings = Settings.from_dict(read_yaml(path))
    logging.debug(f"Loaded settings from {mask_path(path)}")
    return settings


def save_settings(settings: Settings, path=None) -> Path:
    """Write settings to YAML, creating the config directory if needed."""
    path = Path(path) if path else get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    write_yaml(settings.to_dict(), path)
    logging.info(f"Settings saved to {mask_path(path)}")
    return path
