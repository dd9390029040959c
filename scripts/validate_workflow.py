#!/usr/bin/env python3
"""Run and validate the MCP handshake and calculator workflow over STDIO."""

from __future__ import annotations

import argparse
import json
import os
import select
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_RESPONSE_TIMEOUT_SECONDS = 30.0
INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601


@dataclass(slots=True)
class CheckResult:
    """Single validation result."""

    name: str
    ok: bool
    details: str
    expected: str | None = None
    actual: str | None = None


@dataclass(slots=True, frozen=True)
class WorkflowStep:
    """One request and the outcome it must produce."""

    name: str
    request: dict[str, Any]
    expected_text: str | None = None
    expected_error_code: int | None = None
    expected_tools: tuple[str, ...] = ()


def build_workflow_steps() -> list[WorkflowStep]:
    """Return the ordered requests exercised by the workflow."""

    def call(
        request_id: int,
        arguments: dict[str, Any],
        name: str = "calculator_add",
    ) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        }

    return [
        WorkflowStep(
            name="tools/list",
            request={"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
            expected_tools=("calculator_add",),
        ),
        WorkflowStep(
            name="add integers",
            request=call(3, {"a": 5, "b": 3}),
            expected_text="5 + 3 = 8",
        ),
        WorkflowStep(
            name="add decimals",
            request=call(4, {"a": 1.5, "b": 2.7}),
            expected_text="1.5 + 2.7 = 4.2",
        ),
        WorkflowStep(
            name="reject string input",
            request=call(5, {"a": "x", "b": 3}),
            expected_error_code=INVALID_PARAMS,
        ),
        WorkflowStep(
            name="reject unknown field",
            request=call(6, {"a": 1, "b": 2, "c": 3}),
            expected_error_code=INVALID_PARAMS,
        ),
        WorkflowStep(
            name="reject overflow",
            request=call(7, {"a": 1e10, "b": 1e10}),
            expected_error_code=INVALID_PARAMS,
        ),
        WorkflowStep(
            name="unknown tool",
            request=call(8, {}, name="calculator_divide"),
            expected_error_code=METHOD_NOT_FOUND,
        ),
    ]


def check_response(step: WorkflowStep, response: dict[str, Any]) -> CheckResult:
    """Compare one response against the step expectation."""
    request_id = step.request.get("id")
    if response.get("jsonrpc") != "2.0" or response.get("id") != request_id:
        return CheckResult(
            name=step.name,
            ok=False,
            details="Envelope mismatch.",
            expected=f"jsonrpc=2.0 id={request_id}",
            actual=f"jsonrpc={response.get('jsonrpc')} id={response.get('id')}",
        )

    if step.expected_error_code is not None:
        error = response.get("error")
        actual_code = error.get("code") if isinstance(error, dict) else None
        return CheckResult(
            name=step.name,
            ok=actual_code == step.expected_error_code,
            details="Error code check.",
            expected=str(step.expected_error_code),
            actual=str(actual_code),
        )

    result = response.get("result")
    if not isinstance(result, dict):
        return CheckResult(name=step.name, ok=False, details="Missing result object.")

    if step.expected_tools:
        tools = result.get("tools")
        names = tuple(tool.get("name") for tool in tools) if isinstance(tools, list) else ()
        return CheckResult(
            name=step.name,
            ok=names == step.expected_tools,
            details="Tool listing check.",
            expected=", ".join(step.expected_tools),
            actual=", ".join(str(name) for name in names),
        )

    content = result.get("content")
    text = None
    if isinstance(content, list) and content and isinstance(content[0], dict):
        text = content[0].get("text")
    return CheckResult(
        name=step.name,
        ok=text == step.expected_text,
        details="Text content check.",
        expected=step.expected_text,
        actual=str(text),
    )


class WorkflowValidator:
    """Drive a server subprocess through the workflow and collect results."""

    def __init__(self, response_timeout_seconds: float) -> None:
        self.response_timeout_seconds = response_timeout_seconds
        self.proc: subprocess.Popen[str] | None = None
        self.results: list[CheckResult] = []

    def run(self) -> int:
        self._start_server()
        try:
            initialized = self._call(
                {
                    "jsonrpc": "2.0",
                    "id": 1,
                    "method": "initialize",
                    "params": {
                        "protocolVersion": "2024-11-05",
                        "capabilities": {},
                        "clientInfo": {"name": "validate-workflow", "version": "1.0.0"},
                    },
                }
            )
            server_info = initialized.get("result", {}).get("serverInfo", {})
            self.results.append(
                CheckResult(
                    name="initialize",
                    ok=server_info.get("name") == "mcp-boilerplate",
                    details="Server info check.",
                    expected="mcp-boilerplate",
                    actual=str(server_info.get("name")),
                )
            )
            self._notify({"jsonrpc": "2.0", "method": "notifications/initialized"})
            for step in build_workflow_steps():
                started = time.perf_counter()
                response = self._call(step.request)
                result = check_response(step, response)
                result.details = f"{result.details} ({time.perf_counter() - started:.3f}s)"
                self.results.append(result)
        finally:
            self._stop_server()
        self._print_summary()
        return 0 if all(result.ok for result in self.results) else 1

    def _start_server(self) -> None:
        env = os.environ.copy()
        workspace_src = Path(__file__).resolve().parents[1] / "src"
        existing_pythonpath = env.get("PYTHONPATH")
        env["PYTHONPATH"] = (
            str(workspace_src)
            if not existing_pythonpath
            else f"{workspace_src}{os.pathsep}{existing_pythonpath}"
        )
        cmd = [sys.executable, "-m", "mcp_boilerplate.server", "--log-level", "WARNING"]
        print(f"$ {' '.join(cmd)}")
        self.proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            env=env,
        )

    def _stop_server(self) -> None:
        if self.proc is None:
            return
        proc = self.proc
        self.proc = None
        if proc.stdin is not None:
            proc.stdin.close()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.terminate()
            proc.wait(timeout=5)

    def _notify(self, message: dict[str, Any]) -> None:
        if self.proc is None or self.proc.stdin is None:
            raise RuntimeError("Server process is not running.")
        print(f">>> {json.dumps(message, sort_keys=True)}")
        self.proc.stdin.write(json.dumps(message) + "\n")
        self.proc.stdin.flush()

    def _call(self, request: dict[str, Any]) -> dict[str, Any]:
        if self.proc is None or self.proc.stdout is None:
            raise RuntimeError("Server process is not running.")
        self._notify(request)
        stdout_fd = self.proc.stdout.fileno()
        ready, _, _ = select.select([stdout_fd], [], [], self.response_timeout_seconds)
        if not ready:
            raise RuntimeError(
                f"Timed out after {self.response_timeout_seconds:.0f}s waiting for response."
            )
        line = self.proc.stdout.readline()
        if not line:
            raise RuntimeError("No response from server.")
        response = json.loads(line)
        print(f"<<< {json.dumps(response, sort_keys=True)}")
        return response

    def _print_summary(self) -> None:
        print("")
        for result in self.results:
            status = "PASS" if result.ok else "FAIL"
            print(f"[{status}] {result.name}: {result.details}")
            if not result.ok:
                print(f"    expected: {result.expected}")
                print(f"    actual:   {result.actual}")
        passed = sum(1 for result in self.results if result.ok)
        print(f"\n{passed}/{len(self.results)} checks passed")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--response-timeout-seconds",
        type=float,
        default=DEFAULT_RESPONSE_TIMEOUT_SECONDS,
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    return WorkflowValidator(response_timeout_seconds=args.response_timeout_seconds).run()


if __name__ == "__main__":
    raise SystemExit(main())
