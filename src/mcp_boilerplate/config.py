"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import math
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "MCP_BOILERPLATE_"
ENVIRONMENTS = ("development", "production", "test")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")
MAX_TOOL_TIMEOUT_SECONDS = 3600.0

SERVER_NAME = "mcp-boilerplate"
SERVER_VERSION = "1.0.0"


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    environment: str = "development"
    tool_timeout_seconds: float | None = None
    log_level: str = "INFO"
    log_format: str = "text"
    audit_log_path: Path | None = None

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def include_error_detail(self) -> bool:
        """Attach diagnostic detail to internal errors outside production."""
        return not self.is_production

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "environment": self.environment,
            "include_error_detail": self.include_error_detail,
            "tool_timeout_seconds": self.tool_timeout_seconds,
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "audit_log": str(self.audit_log_path) if self.audit_log_path else None,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    environment: str | None = None
    tool_timeout_seconds: float | None = None
    log_level: str | None = None
    log_format: str | None = None
    audit_log_path: Path | None = None


def load_config_file(path: Path) -> dict[str, object]:
    """Load a TOML config file; the file must exist when a path is given."""
    if not path.exists():
        raise ValueError(f"Config file not found: {path}")
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    return payload


def _get_table(payload: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_file_config(base: ServerConfig, payload: Mapping[str, object]) -> ServerConfig:
    """Apply values from a parsed config file over ``base``."""
    server_payload = _get_table(payload, "server")
    logging_payload = _get_table(payload, "logging")

    environment = base.environment
    if "environment" in server_payload:
        environment = _choice(server_payload["environment"], "server.environment", ENVIRONMENTS)

    tool_timeout_seconds = base.tool_timeout_seconds
    if "tool_timeout_seconds" in server_payload:
        tool_timeout_seconds = _positive_seconds(
            server_payload["tool_timeout_seconds"], "server.tool_timeout_seconds"
        )

    log_level = base.log_level
    if "level" in logging_payload:
        log_level = _log_level(logging_payload["level"], "logging.level")

    log_format = base.log_format
    if "format" in logging_payload:
        log_format = _choice(logging_payload["format"], "logging.format", LOG_FORMATS)

    audit_log_path = base.audit_log_path
    if "audit_log" in logging_payload:
        raw_audit_log = logging_payload["audit_log"]
        if not isinstance(raw_audit_log, str) or not raw_audit_log:
            raise ValueError("Config field 'logging.audit_log' must be a non-empty string.")
        audit_log_path = Path(raw_audit_log)

    return ServerConfig(
        environment=environment,
        tool_timeout_seconds=tool_timeout_seconds,
        log_level=log_level,
        log_format=log_format,
        audit_log_path=audit_log_path,
    )


def merge_environment(base: ServerConfig, environ: Mapping[str, str]) -> ServerConfig:
    """Apply ``MCP_BOILERPLATE_*`` environment variables over ``base``."""

    def lookup(name: str) -> str | None:
        value = environ.get(f"{ENV_PREFIX}{name}")
        if value is None or not value.strip():
            return None
        return value.strip()

    environment = base.environment
    raw_environment = lookup("ENV")
    if raw_environment is not None:
        environment = _choice(raw_environment.lower(), f"{ENV_PREFIX}ENV", ENVIRONMENTS)

    tool_timeout_seconds = base.tool_timeout_seconds
    raw_timeout = lookup("TOOL_TIMEOUT")
    if raw_timeout is not None:
        try:
            parsed_timeout = float(raw_timeout)
        except ValueError as error:
            raise ValueError(
                f"Config field '{ENV_PREFIX}TOOL_TIMEOUT' must be a positive number."
            ) from error
        tool_timeout_seconds = _positive_seconds(parsed_timeout, f"{ENV_PREFIX}TOOL_TIMEOUT")

    log_level = base.log_level
    raw_level = lookup("LOG_LEVEL")
    if raw_level is not None:
        log_level = _log_level(raw_level, f"{ENV_PREFIX}LOG_LEVEL")

    log_format = base.log_format
    raw_format = lookup("LOG_FORMAT")
    if raw_format is not None:
        log_format = _choice(raw_format.lower(), f"{ENV_PREFIX}LOG_FORMAT", LOG_FORMATS)

    audit_log_path = base.audit_log_path
    raw_audit_log = lookup("AUDIT_LOG")
    if raw_audit_log is not None:
        audit_log_path = Path(raw_audit_log)

    return ServerConfig(
        environment=environment,
        tool_timeout_seconds=tool_timeout_seconds,
        log_level=log_level,
        log_format=log_format,
        audit_log_path=audit_log_path,
    )


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    environment = config.environment
    if overrides.environment is not None:
        environment = _choice(overrides.environment, "overrides.environment", ENVIRONMENTS)
    tool_timeout_seconds = config.tool_timeout_seconds
    if overrides.tool_timeout_seconds is not None:
        tool_timeout_seconds = _positive_seconds(
            overrides.tool_timeout_seconds, "overrides.tool_timeout_seconds"
        )
    log_level = config.log_level
    if overrides.log_level is not None:
        log_level = _log_level(overrides.log_level, "overrides.log_level")
    log_format = config.log_format
    if overrides.log_format is not None:
        log_format = _choice(overrides.log_format, "overrides.log_format", LOG_FORMATS)
    return ServerConfig(
        environment=environment,
        tool_timeout_seconds=tool_timeout_seconds,
        log_level=log_level,
        log_format=log_format,
        audit_log_path=overrides.audit_log_path or config.audit_log_path,
    )


def load_effective_config(
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Load effective config using merge order defaults -> file -> environment -> overrides."""
    config = ServerConfig()
    if config_path is not None:
        config = merge_file_config(config, load_config_file(config_path))
    config = merge_environment(config, os.environ if environ is None else environ)
    return apply_cli_overrides(config, overrides or CliOverrides())


def _choice(value: object, name: str, allowed: tuple[str, ...]) -> str:
    if not isinstance(value, str) or value not in allowed:
        raise ValueError(f"Config field '{name}' must be one of: {', '.join(allowed)}.")
    return value


def _log_level(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Config field '{name}' must be one of: {', '.join(LOG_LEVELS)}.")
    return _choice(value.upper(), name, LOG_LEVELS)


def _positive_seconds(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Config field '{name}' must be a positive number.")
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Config field '{name}' must be a positive number.")
    if value > MAX_TOOL_TIMEOUT_SECONDS:
        raise ValueError(f"Config field '{name}' must be <= {MAX_TOOL_TIMEOUT_SECONDS:g}.")
    return float(value)
