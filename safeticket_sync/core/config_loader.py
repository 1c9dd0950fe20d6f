"""Configuration management for safeTicket sync."""

import asyncio
import os
import re
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError
from .settings import HTTP_TIMEOUT

logger = structlog.get_logger()

DEFAULT_CONFIG_FILE = "config/safeticket.yml"
KEY_PLACEHOLDER_PREFIX = "INSERT_YOUR_"

KeyTier = Literal["service_role", "publishable"]


def _is_unset(value: str | None) -> bool:
    """Empty, a placeholder, or a ${VAR} reference whose variable was not set."""
    if not value or not value.strip():
        return True
    value = value.strip()
    return value.startswith(KEY_PLACEHOLDER_PREFIX) or value.startswith("${")


class SupabaseConfig(BaseModel):
    """Connection settings for the hosted table service."""

    url: str = ""
    service_role_key: str | None = None
    publishable_key: str | None = None
    timeout: float = HTTP_TIMEOUT

    def rest_url(self) -> str:
        """Base URL without trailing slash."""
        if _is_unset(self.url):
            raise ConfigurationError("Supabase URL is not configured (set SUPABASE_URL)")
        return self.url.rstrip("/")

    def key_for(self, tier: KeyTier) -> str:
        """Return the API key for a credential tier.

        The service-role tier is mandatory for writes. The publishable tier
        falls back to the service-role key when no publishable key is set.
        """
        if tier == "service_role":
            if _is_unset(self.service_role_key):
                raise ConfigurationError(
                    "A service-role key is required for writes (set SUPABASE_SERVICE_ROLE_KEY)"
                )
            return self.service_role_key.strip()

        if not _is_unset(self.publishable_key):
            return self.publishable_key.strip()
        if not _is_unset(self.service_role_key):
            return self.service_role_key.strip()
        raise ConfigurationError(
            "No API key configured (set SUPABASE_PUBLISHABLE_KEY or SUPABASE_SERVICE_ROLE_KEY)"
        )


class SafeTicketConfig(BaseSettings):
    """Main configuration for safeTicket sync."""

    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    source_data: str | None = Field(default=None, alias="SAFETICKET_SOURCE_DATA")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    config_file: str = Field(default=DEFAULT_CONFIG_FILE, alias="SAFETICKET_CONFIG")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }


def load_config(config_path: str | None = None) -> SafeTicketConfig:
    """Load configuration from multiple sources (synchronous interface).

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Loaded configuration

    Note:
        Must not be called from a running event loop; use load_config_async() there.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(load_config_async(config_path))
    raise RuntimeError(
        "load_config() cannot be called from within an async context. "
        "Use 'await load_config_async()' instead."
    )


async def load_config_async(config_path: str | None = None) -> SafeTicketConfig:
    """Load configuration from multiple sources (async interface).

    Precedence, lowest first: defaults, user YAML, project YAML, environment.
    """
    load_dotenv()

    config = SafeTicketConfig()

    user_config_path = Path.home() / ".config" / "safeticket" / "safeticket.yml"
    await _load_config_file(config, user_config_path)

    default_config_file = os.getenv("SAFETICKET_CONFIG", DEFAULT_CONFIG_FILE)
    project_config_path = Path(config_path or default_config_file)
    await _load_config_file(config, project_config_path)

    config.config_file = str(project_config_path)

    _apply_env_overrides(config)

    return config


async def _load_config_file(config: SafeTicketConfig, config_path: Path) -> None:
    """Load and apply configuration from a YAML file."""
    if not config_path.exists():
        return

    yaml_config = await _load_yaml_config(config_path)
    try:
        _apply_supabase_config(config, yaml_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid supabase section in {config_path}: {e}") from e

    if yaml_config.get("source_data"):
        config.source_data = str(yaml_config["source_data"])
    if yaml_config.get("log_level"):
        config.log_level = str(yaml_config["log_level"])


def _apply_supabase_config(config: SafeTicketConfig, yaml_config: dict[str, Any]) -> None:
    """Apply supabase connection settings from YAML data."""
    section = yaml_config.get("supabase")
    if not section:
        return
    if not isinstance(section, dict):
        raise ConfigurationError("The 'supabase' config section must be a mapping")
    merged = {**config.supabase.model_dump(), **section}
    config.supabase = SupabaseConfig.model_validate(merged)


def _apply_env_overrides(config: SafeTicketConfig) -> None:
    """Apply environment variable overrides."""
    if url := os.getenv("SUPABASE_URL"):
        config.supabase.url = url
    if service_key := os.getenv("SUPABASE_SERVICE_ROLE_KEY"):
        config.supabase.service_role_key = service_key
    publishable_key = os.getenv("SUPABASE_PUBLISHABLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
    if publishable_key:
        config.supabase.publishable_key = publishable_key
    if timeout_env := os.getenv("SUPABASE_HTTP_TIMEOUT"):
        try:
            config.supabase.timeout = float(timeout_env)
        except ValueError as e:
            raise ConfigurationError(
                f"SUPABASE_HTTP_TIMEOUT must be a number: {timeout_env}"
            ) from e
    if source := os.getenv("SAFETICKET_SOURCE_DATA"):
        config.source_data = source
    if level := os.getenv("LOG_LEVEL"):
        config.log_level = level


async def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML configuration file."""
    try:
        content = await asyncio.to_thread(config_path.read_text, encoding="utf-8")
        content = _expand_yaml_config(content)
        loaded = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e

    if not isinstance(loaded, dict):
        return {}
    return loaded


def _expand_yaml_config(content: str) -> str:
    """Expand ${VAR} references, restricted to an allowlist."""

    allowed_env_vars = {
        "HOME",
        "USER",
        "XDG_CONFIG_HOME",
        "XDG_DATA_HOME",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "SUPABASE_PUBLISHABLE_KEY",
        "SUPABASE_ANON_KEY",
        "SAFETICKET_SOURCE_DATA",
        "LOG_LEVEL",
    }

    def replace_var(match: re.Match) -> str:
        var_name = match.group(1)
        if var_name in allowed_env_vars:
            return os.getenv(var_name, match.group(0))  # Keep original if not found
        logger.warning(
            "Environment variable not in allowlist, skipping expansion",
            variable=var_name,
        )
        return match.group(0)

    return re.sub(r"\$\{([^}]+)\}", replace_var, content)
