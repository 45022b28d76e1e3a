"""Configuration management for Scrotto.

Configuration priority (highest to lowest):
1. Environment variables (SCROTTO_*)
2. Config file (~/.config/scrotto/config.yaml, or --config)
3. Built-in defaults
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any

import yaml
from platformdirs import user_config_dir

ENV_PREFIX = "SCROTTO"
CONFIG_DIR = Path(user_config_dir("scrotto"))
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"


@dataclass
class Config:
    """Scrotto configuration."""

    # Capture artifact
    temp_file: Path = field(default_factory=lambda: Path("/tmp/screen_grab.png"))

    # OCR engine
    ocr_command: str = "tesseract"
    ocr_language: str = "eng"

    # Notifications
    app_name: str = "Scrotto"
    notification_timeout_ms: int = 5000
    preview_chars: int = 100

    # Desktop portal interaction
    portal_timeout_ms: int = 120000

    def __post_init__(self):
        if isinstance(self.temp_file, str):
            self.temp_file = Path(self.temp_file)


PATH_KEYS = {"temp_file"}
INT_KEYS = {"notification_timeout_ms", "preview_chars", "portal_timeout_ms"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def _config_path_from_env() -> Optional[Path]:
    value = _env("CONFIG") or _env("CONFIG_PATH")
    if value:
        return Path(value).expanduser()
    return None


def _load_config_file(path: Path, strict: bool = False) -> dict:
    """Read the YAML config file.

    With strict=True any parse or validation problem raises ValueError;
    otherwise broken files are ignored and invalid entries dropped.
    """
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        if strict:
            raise ValueError(f"Failed to parse config file {path}: {exc}")
        return {}

    errors = validate_config_dict(data)
    if errors and strict:
        raise ValueError(f"Invalid config file {path}: " + "; ".join(errors))
    if not isinstance(data, dict):
        return {}

    return {key: value for key, value in data.items() if not validate_config_dict({key: value})}


def _expand_path(value: Any) -> Any:
    if value is None:
        return value
    return str(Path(value).expanduser())


def config_defaults() -> dict:
    return {
        "temp_file": "/tmp/screen_grab.png",
        "ocr_command": "tesseract",
        "ocr_language": "eng",
        "app_name": "Scrotto",
        "notification_timeout_ms": 5000,
        "preview_chars": 100,
        "portal_timeout_ms": 120000,
    }


def _load_env_overrides() -> dict:
    config: dict[str, Any] = {}

    mapping = {
        "TEMP_FILE": "temp_file",
        "OCR_COMMAND": "ocr_command",
        "OCR_LANGUAGE": "ocr_language",
        "APP_NAME": "app_name",
        "NOTIFICATION_TIMEOUT_MS": "notification_timeout_ms",
        "PREVIEW_CHARS": "preview_chars",
        "PORTAL_TIMEOUT_MS": "portal_timeout_ms",
    }

    for env_name, key in mapping.items():
        value = _env(env_name)
        if value is None:
            continue
        if key in PATH_KEYS:
            config[key] = _expand_path(value)
        elif key in INT_KEYS:
            try:
                config[key] = int(value)
            except ValueError:
                continue
        else:
            config[key] = value

    return config


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    return config_path or _config_path_from_env() or DEFAULT_CONFIG_PATH


def load_config(
    config_path: Optional[Path] = None,
    strict: bool = False,
) -> Config:
    """Load configuration from all sources.

    Raises:
        ValueError: If strict and the config file is malformed or invalid
    """
    resolved_path = resolve_config_path(config_path)

    config_dict = config_defaults()
    file_config = _load_config_file(resolved_path, strict=strict)
    config_dict.update(file_config)
    config_dict.update(_load_env_overrides())

    for key in PATH_KEYS:
        if key in config_dict and config_dict[key] is not None:
            config_dict[key] = _expand_path(config_dict[key])

    return Config(**config_dict)


def config_schema() -> dict:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "temp_file": {"type": "string"},
            "ocr_command": {"type": "string"},
            "ocr_language": {"type": "string"},
            "app_name": {"type": "string"},
            "notification_timeout_ms": {"type": "integer", "minimum": 0},
            "preview_chars": {"type": "integer", "minimum": 1},
            "portal_timeout_ms": {"type": "integer", "minimum": 1},
        },
        "additionalProperties": False,
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    props = config_schema()["properties"]

    for key in data.keys():
        if key not in props:
            errors.append(f"Unknown config key: {key}")

    for key, value in data.items():
        if key not in props:
            continue
        spec = props[key]
        expected = spec["type"]
        if expected == "string" and not isinstance(value, str):
            errors.append(f"{key} must be a string")
            continue
        if expected == "integer":
            if not _is_int(value):
                errors.append(f"{key} must be an integer")
                continue
            minimum = spec.get("minimum")
            if minimum is not None and value < minimum:
                errors.append(f"{key} must be >= {minimum}")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    path = resolve_config_path(config_path)
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        return [f"Failed to parse config file {path}: {exc}"]
    return validate_config_dict(data)


def config_to_dict(config: Config) -> dict:
    return {
        "temp_file": str(config.temp_file),
        "ocr_command": config.ocr_command,
        "ocr_language": config.ocr_language,
        "app_name": config.app_name,
        "notification_timeout_ms": config.notification_timeout_ms,
        "preview_chars": config.preview_chars,
        "portal_timeout_ms": config.portal_timeout_ms,
    }
