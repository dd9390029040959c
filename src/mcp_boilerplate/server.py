"""STDIO JSON-RPC server entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from mcp_boilerplate.config import (
    ENVIRONMENTS,
    LOG_FORMATS,
    LOG_LEVELS,
    SERVER_NAME,
    SERVER_VERSION,
    CliOverrides,
    ServerConfig,
    load_effective_config,
)
from mcp_boilerplate.logging import (
    AuditEvent,
    JsonlAuditLogger,
    configure_logging,
    sanitize_arguments,
    utc_timestamp,
)
from mcp_boilerplate.tools import (
    ErrorKind,
    ToolDispatcher,
    ToolError,
    ToolRegistry,
    build_registry,
    invalid_params,
    method_not_found,
)
from mcp_boilerplate.tools.errors import INVALID_REQUEST_CODE, PARSE_ERROR_CODE

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

INTERRUPTED_EXIT_CODE = 130

RequestId = str | int | None


class ShutdownRequested(BaseException):
    """Raised from the SIGTERM handler to unwind the serve loop."""


@dataclass(slots=True, frozen=True)
class Request:
    """Normalized incoming JSON-RPC message."""

    request_id: RequestId
    method: str
    params: dict[str, object]
    is_notification: bool


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for server startup configuration."""
    parser = argparse.ArgumentParser(prog="mcp-boilerplate")
    parser.add_argument("--config", required=False, default=None)
    parser.add_argument("--environment", choices=ENVIRONMENTS, required=False, default=None)
    parser.add_argument("--tool-timeout", type=float, required=False, default=None)
    parser.add_argument("--log-level", choices=LOG_LEVELS, required=False, default=None)
    parser.add_argument("--log-format", choices=LOG_FORMATS, required=False, default=None)
    parser.add_argument("--audit-log", required=False, default=None)
    return parser


class StdioServer:
    """Line-oriented JSON-RPC server routing MCP methods to the tool dispatcher."""

    def __init__(
        self,
        config: ServerConfig,
        registry: ToolRegistry | None = None,
    ) -> None:
        self._config = config
        self._registry = registry if registry is not None else build_registry()
        self._dispatcher = ToolDispatcher(
            self._registry,
            include_error_detail=config.include_error_detail,
            timeout_seconds=config.tool_timeout_seconds,
        )
        self._audit_logger: JsonlAuditLogger | None = None
        if config.audit_log_path is not None:
            self._audit_logger = JsonlAuditLogger(path=config.audit_log_path)
        self._client_info: dict[str, object] | None = None

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def audit_logger(self) -> JsonlAuditLogger | None:
        return self._audit_logger

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Process JSON-line requests until EOF on ``in_stream``."""
        asyncio.run(self.serve_async(in_stream, out_stream))

    async def serve_async(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Handle lines one at a time on the running event loop."""
        # Reads block the loop thread. Requests are handled strictly in order, and
        # a signal raised mid-read unwinds straight out of serve().
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = await self.handle_json_line(line)
            if response is None:
                continue
            out_stream.write(f"{json.dumps(response, sort_keys=True)}\n")
            out_stream.flush()

    async def handle_json_line(self, raw_line: str) -> dict[str, object] | None:
        """Handle a single JSON-line message."""
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            response = self.error_response(
                request_id=None,
                error={"code": PARSE_ERROR_CODE, "message": "Parse error"},
            )
            self.log_request(
                request_id=None,
                method="invalid_json",
                tool_name=None,
                arguments={"raw_line_length": len(raw_line)},
                response=response,
                started=time.perf_counter(),
            )
            return response
        return await self.handle_payload(payload)

    async def handle_payload(self, payload: object) -> dict[str, object] | None:
        """Validate, route and answer a parsed message.

        Returns None for notifications, which never get a response line.
        """
        started = time.perf_counter()
        parsed = self.parse_request(payload)
        if isinstance(parsed, dict):
            self.log_request(
                request_id=parsed.get("id"),  # type: ignore[arg-type]
                method="invalid_request",
                tool_name=None,
                arguments={},
                response=parsed,
                started=started,
            )
            return parsed

        request = parsed
        tool_name: str | None = None
        arguments: dict[str, object] = request.params
        if request.method == "tools/call":
            name_value = request.params.get("name")
            arguments_value = request.params.get("arguments")
            if isinstance(name_value, str):
                tool_name = name_value
            if isinstance(arguments_value, dict):
                arguments = arguments_value

        try:
            result = await self._route(request)
        except ToolError as error:
            response = self.error_response(request_id=request.request_id, error=error.to_wire())
        except Exception:
            logger.exception("Unhandled server error while handling %s", request.method)
            response = self.error_response(
                request_id=request.request_id,
                error={
                    "code": ErrorKind.INTERNAL_ERROR.code,
                    "message": "Unhandled server error while handling request.",
                },
            )
        else:
            response = self.success_response(request_id=request.request_id, result=result)

        self.log_request(
            request_id=request.request_id,
            method=request.method,
            tool_name=tool_name,
            arguments=arguments,
            response=response,
            started=started,
        )
        if request.is_notification:
            return None
        return response

    def parse_request(self, payload: object) -> Request | dict[str, object]:
        """Validate the JSON-RPC envelope and return a normalized Request."""
        if not isinstance(payload, dict):
            return self.invalid_request_response(None, "Request must be an object.")

        has_id = "id" in payload
        raw_id = payload.get("id")
        if has_id and not _is_valid_request_id(raw_id):
            return self.invalid_request_response(None, "Request id must be a string or integer.")
        request_id: RequestId = raw_id if has_id else None  # type: ignore[assignment]

        if payload.get("jsonrpc") != JSONRPC_VERSION:
            return self.invalid_request_response(request_id, "jsonrpc must be exactly '2.0'.")

        method = payload.get("method")
        if not isinstance(method, str) or not method:
            return self.invalid_request_response(
                request_id, "Request method must be a non-empty string."
            )

        params = payload.get("params", {})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return self.error_response(
                request_id=request_id,
                error=invalid_params("Request params must be an object.").to_wire(),
            )

        return Request(
            request_id=request_id,
            method=method,
            params=params,
            is_notification=not has_id,
        )

    async def _route(self, request: Request) -> dict[str, object]:
        if request.method == "initialize":
            return self._initialize(request.params)
        if request.method.startswith("notifications/") or request.method == "ping":
            return {}
        if request.method == "tools/list":
            return {"tools": [summary.to_dict() for summary in self._dispatcher.list_tools()]}
        if request.method == "tools/call":
            name_value = request.params.get("name")
            arguments_value = request.params.get("arguments")
            if not isinstance(name_value, str) or not name_value:
                raise invalid_params("tools/call params.name must be a non-empty string.")
            if arguments_value is not None and not isinstance(arguments_value, dict):
                raise invalid_params("tools/call params.arguments must be an object.")
            result = await self._dispatcher.call_tool(name_value, arguments_value)
            return result.to_dict()
        raise method_not_found(f"Method '{request.method}' not found")

    def _initialize(self, params: dict[str, object]) -> dict[str, object]:
        requested = params.get("protocolVersion")
        protocol_version = (
            requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        )
        client_info = params.get("clientInfo")
        if isinstance(client_info, dict):
            self._client_info = client_info
            logger.info(
                "Client connected: %s %s", client_info.get("name"), client_info.get("version")
            )
        return {
            "protocolVersion": protocol_version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    @staticmethod
    def success_response(request_id: RequestId, result: dict[str, object]) -> dict[str, object]:
        """Build success envelope."""
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    @staticmethod
    def error_response(request_id: RequestId, error: dict[str, object]) -> dict[str, object]:
        """Build error envelope."""
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}

    @classmethod
    def invalid_request_response(cls, request_id: RequestId, reason: str) -> dict[str, object]:
        """Build an Invalid Request envelope with the reason in ``data``."""
        return cls.error_response(
            request_id=request_id,
            error={
                "code": INVALID_REQUEST_CODE,
                "message": "Invalid Request",
                "data": {"reason": reason},
            },
        )

    def log_request(
        self,
        request_id: RequestId,
        method: str,
        tool_name: str | None,
        arguments: dict[str, object],
        response: dict[str, object],
        started: float,
    ) -> None:
        """Log one sanitized request event."""
        error_payload = response.get("error")
        error_code: int | None = None
        if isinstance(error_payload, dict):
            code_value = error_payload.get("code")
            if isinstance(code_value, int):
                error_code = code_value
        duration_ms = round((time.perf_counter() - started) * 1000, 3)
        logger.debug(
            "method=%s tool=%s ok=%s error_code=%s duration_ms=%s",
            method,
            tool_name,
            error_code is None,
            error_code,
            duration_ms,
        )
        if self._audit_logger is None:
            return
        event = AuditEvent(
            timestamp=utc_timestamp(),
            request_id=None if request_id is None else str(request_id),
            method=method,
            tool=tool_name,
            ok=error_code is None,
            error_code=error_code,
            duration_ms=duration_ms,
            metadata=sanitize_arguments(arguments),
        )
        self._audit_logger.append(event)


def create_server(
    config: ServerConfig | None = None,
    registry: ToolRegistry | None = None,
    config_path: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured STDIO server instance."""
    if config is None:
        config = load_effective_config(
            config_path=Path(config_path) if config_path is not None else None,
            overrides=cli_overrides,
        )
    return StdioServer(config=config, registry=registry)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the server process."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        environment=args.environment,
        tool_timeout_seconds=args.tool_timeout,
        log_level=args.log_level,
        log_format=args.log_format,
        audit_log_path=Path(args.audit_log) if args.audit_log is not None else None,
    )
    try:
        server = create_server(config_path=args.config, cli_overrides=overrides)
    except ValueError as error:
        parser.error(str(error))

    configure_logging(level=server.config.log_level, fmt=server.config.log_format)
    logger.info("Starting %s %s (%s)", SERVER_NAME, SERVER_VERSION, server.config.environment)
    logger.info("Tools available: %s", ", ".join(server.registry.names()))
    logger.info("Waiting for requests on stdin")
    previous_handler = signal.signal(signal.SIGTERM, _raise_shutdown)
    try:
        server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")
        return INTERRUPTED_EXIT_CODE
    except ShutdownRequested:
        logger.info("Received SIGTERM, shutting down")
        return 0
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
    logger.info("Input closed, shutting down")
    return 0


def _raise_shutdown(signum: int, frame: object) -> None:
    raise ShutdownRequested(signum)


def _is_valid_request_id(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int))


if __name__ == "__main__":
    raise SystemExit(main())
