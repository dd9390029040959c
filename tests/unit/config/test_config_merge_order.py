from __future__ import annotations

from pathlib import Path

from mcp_boilerplate.config import (
    CliOverrides,
    ServerConfig,
    apply_cli_overrides,
    load_effective_config,
    merge_environment,
)


def test_defaults_are_development_with_detail() -> None:
    config = load_effective_config(environ={})

    assert config == ServerConfig()
    assert config.environment == "development"
    assert config.include_error_detail is True
    assert config.tool_timeout_seconds is None
    assert config.audit_log_path is None


def test_production_environment_disables_detail() -> None:
    config = load_effective_config(environ={"MCP_BOILERPLATE_ENV": "Production"})

    assert config.is_production is True
    assert config.include_error_detail is False


def test_environment_values_are_parsed() -> None:
    config = merge_environment(
        ServerConfig(),
        {
            "MCP_BOILERPLATE_TOOL_TIMEOUT": "2.5",
            "MCP_BOILERPLATE_LOG_LEVEL": "debug",
            "MCP_BOILERPLATE_LOG_FORMAT": "JSON",
            "MCP_BOILERPLATE_AUDIT_LOG": "/tmp/audit.jsonl",
        },
    )

    assert config.tool_timeout_seconds == 2.5
    assert config.log_level == "DEBUG"
    assert config.log_format == "json"
    assert config.audit_log_path == Path("/tmp/audit.jsonl")


def test_blank_environment_values_are_ignored() -> None:
    config = merge_environment(ServerConfig(), {"MCP_BOILERPLATE_ENV": "  "})

    assert config.environment == "development"


def test_merge_order_file_then_environment_then_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "mcp_boilerplate.toml"
    config_path.write_text(
        "\n".join(
            [
                "[server]",
                'environment = "test"',
                "tool_timeout_seconds = 10",
                "[logging]",
                'level = "warning"',
                'format = "json"',
                'audit_log = "from-file.jsonl"',
            ]
        ),
        encoding="utf-8",
    )

    from_file = load_effective_config(config_path=config_path, environ={})
    assert from_file.environment == "test"
    assert from_file.tool_timeout_seconds == 10.0
    assert from_file.log_level == "WARNING"
    assert from_file.log_format == "json"
    assert from_file.audit_log_path == Path("from-file.jsonl")

    from_env = load_effective_config(
        config_path=config_path,
        environ={"MCP_BOILERPLATE_ENV": "production", "MCP_BOILERPLATE_TOOL_TIMEOUT": "3"},
    )
    assert from_env.environment == "production"
    assert from_env.tool_timeout_seconds == 3.0
    assert from_env.log_format == "json"

    from_cli = load_effective_config(
        config_path=config_path,
        overrides=CliOverrides(environment="development", tool_timeout_seconds=1.0),
        environ={"MCP_BOILERPLATE_ENV": "production"},
    )
    assert from_cli.environment == "development"
    assert from_cli.tool_timeout_seconds == 1.0
    assert from_cli.log_level == "WARNING"


def test_cli_audit_log_overrides_previous_value() -> None:
    config = apply_cli_overrides(
        ServerConfig(audit_log_path=Path("a.jsonl")),
        CliOverrides(audit_log_path=Path("b.jsonl")),
    )

    assert config.audit_log_path == Path("b.jsonl")


def test_public_dict_snapshot() -> None:
    config = ServerConfig(environment="production", audit_log_path=Path("audit.jsonl"))

    assert config.to_public_dict() == {
        "environment": "production",
        "include_error_detail": False,
        "tool_timeout_seconds": None,
        "logging": {"level": "INFO", "format": "text", "audit_log": "audit.jsonl"},
    }
