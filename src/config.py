"""
Configuration loading.

Settings come from a YAML file (defaults when it is missing), with ${VAR}
expansion and a handful of environment overrides applied on top.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import structlog
import yaml
from dotenv import load_dotenv

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class Settings:
    """Resolved server settings."""
    duckdb_path: str = "data/telemetry.duckdb"
    recovery_log_path: str = "data/recovery/recovery.sql"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    environment: str = "development"


def _default_config() -> dict:
    return {
        "environment": "development",
        "log_level": "INFO",
        "storage": {
            "duckdb": {"path": "data/telemetry.duckdb"},
            "recovery_log": {"path": "data/recovery/recovery.sql"},
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8080,
            "cors_origins": ["http://localhost:3000"],
        },
    }


def expand_env_vars(value):
    """Expand ${VAR} references. Unknown variables are left as written,
    except DATA_DIR which falls back to "data"."""
    if not isinstance(value, str) or "${" not in value:
        return value

    def replace_env(match):
        env_var = match.group(1)
        if env_var == "DATA_DIR":
            return os.environ.get(env_var, "data")
        return os.environ.get(env_var, match.group(0))

    return _ENV_VAR_PATTERN.sub(replace_env, value)


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        logger.warning("config_not_found_using_defaults", path=str(path))
        return _default_config()

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    logger.info("config_loaded", path=str(path))
    return config


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML and the environment.

    Environment overrides (highest priority):
        DUCKDB_PATH, RECOVERY_LOG_PATH, API_HOST, API_PORT,
        CORS_ORIGINS (comma separated), LOG_LEVEL

    Args:
        config_path: YAML file path; falls back to TELEMETRY_CONFIG,
                     then config/settings.yaml

    Returns:
        Resolved Settings
    """
    load_dotenv()

    path = Path(config_path or os.environ.get("TELEMETRY_CONFIG", DEFAULT_CONFIG_PATH))
    config = _load_yaml(path)

    storage = config.get("storage", {})
    api = config.get("api", {})
    defaults = Settings()

    settings = Settings(
        duckdb_path=expand_env_vars(
            storage.get("duckdb", {}).get("path", defaults.duckdb_path)
        ),
        recovery_log_path=expand_env_vars(
            storage.get("recovery_log", {}).get("path", defaults.recovery_log_path)
        ),
        api_host=api.get("host", defaults.api_host),
        api_port=int(api.get("port", defaults.api_port)),
        cors_origins=list(api.get("cors_origins", defaults.cors_origins)),
        log_level=config.get("log_level", defaults.log_level),
        environment=config.get("environment", defaults.environment),
    )

    if os.environ.get("DUCKDB_PATH"):
        settings.duckdb_path = os.path.expandvars(os.environ["DUCKDB_PATH"])
    if os.environ.get("RECOVERY_LOG_PATH"):
        settings.recovery_log_path = os.path.expandvars(os.environ["RECOVERY_LOG_PATH"])
    if os.environ.get("API_HOST"):
        settings.api_host = os.environ["API_HOST"]
    if os.environ.get("API_PORT"):
        settings.api_port = int(os.environ["API_PORT"])
    if os.environ.get("CORS_ORIGINS"):
        settings.cors_origins = [
            origin.strip()
            for origin in os.environ["CORS_ORIGINS"].split(",")
            if origin.strip()
        ]
    if os.environ.get("LOG_LEVEL"):
        settings.log_level = os.environ["LOG_LEVEL"]

    return settings
