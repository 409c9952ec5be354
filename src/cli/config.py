"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./boxcycle.yaml (working directory)
3. ~/.boxcycle/config.yaml (user home)

Environment variables override YAML: BOXCYCLE_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.

The database location is not part of this file; see
src.db.connection.get_database_url.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

ENV_PREFIX = "BOXCYCLE_"


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ServerConfig(BaseModel):
    """Configuration for the HTTP server (boxcycle serve)."""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"


class NotificationConfig(BaseModel):
    """Operator and customer notification settings for generation runs.

    A template id of 0 disables the corresponding notification.
    """

    admin_email: str = ""
    brevo_api_key: str = ""
    sender_email: str = "noreply@boxcycle.local"
    sender_name: str = "BoxCycle"
    success_template_id: int = 0
    errors_template_id: int = 0
    failure_template_id: int = 0
    delivery_upcoming_template_id: int = 0
    track_url: str = "https://boxcycle.local/order/track"


class BoxCycleConfig(BaseModel):
    """Top-level configuration for BoxCycle."""

    notifications: NotificationConfig = NotificationConfig()
    server: ServerConfig = ServerConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    candidates = [
        Path.cwd() / "boxcycle.yaml",
        Path.cwd() / "boxcycle.yml",
        Path.home() / ".boxcycle" / "config.yaml",
        Path.home() / ".boxcycle" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _coerce(section: str, field: str, value: str) -> Any:
    """Convert an env string to the type declared on the section model."""
    section_model = BoxCycleConfig.model_fields[section].annotation
    field_info = section_model.model_fields.get(field)
    if field_info is None:
        return value
    if field_info.annotation is int:
        try:
            return int(value)
        except ValueError:
            return value
    if field_info.annotation is bool:
        return value.lower() == "true"
    return value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply BOXCYCLE_<SECTION>_<KEY> env var overrides to config data.

    For example, ``BOXCYCLE_NOTIFICATIONS_ADMIN_EMAIL`` maps to section
    ``notifications``, field ``admin_email``. Unknown sections are ignored.
    """
    known_sections = sorted(BoxCycleConfig.model_fields.keys(), key=len, reverse=True)
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        suffix = key[len(ENV_PREFIX):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if matched_section not in data:
            data[matched_section] = {}
        if isinstance(data[matched_section], dict):
            data[matched_section][matched_field] = _coerce(
                matched_section, matched_field, value
            )
    return data


def load_config(config_path: str | None = None) -> BoxCycleConfig:
    """Load BoxCycle configuration from YAML file with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.boxcycle/).

    Returns:
        Parsed and validated BoxCycleConfig. Without a config file the
        defaults plus env overrides are returned.

    Raises:
        FileNotFoundError: config_path was given but does not exist.
    """
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    raw_data: dict[str, Any] = {}
    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return BoxCycleConfig(**data)
