"""Configuration loading: config.yaml in standard locations plus env overrides."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .config_models import AppConfig

# env var -> (section, key)
ENV_OVERRIDES = {
    "DATABASE_PATH": ("storage", "db_path"),
    "AGENT_ORCHESTRATOR_SECRET": ("server", "shared_secret"),
    "PORT": ("server", "port"),
    "LLM_PROVIDER": ("llm", "provider"),
    "LLM_MODEL": ("llm", "model"),
    "LLM_TIMEOUT_SECONDS": ("llm", "timeout_seconds"),
    "LOG_LEVEL": ("logging", "level"),
}


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    explicit = os.getenv("GRAIN_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    locations = [
        Path.cwd() / "config.yaml",
        Path.home() / ".grain" / "config.yaml",
        Path.home() / "grain" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config_model(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration as Pydantic model with validation."""
    base_config: dict = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    merged = _deep_merge(base_config, _env_overrides())

    frontend = os.getenv("FRONTEND_ORIGIN")
    if frontend:
        merged.setdefault("server", {})["frontend_origins"] = [
            o.strip() for o in frontend.split(",") if o.strip()
        ]

    try:
        return AppConfig.from_dict(merged)
    except ValidationError as e:
        raise ValueError(f"Config validation failed: {e}")


def _env_overrides() -> dict:
    overrides: dict = {}
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
