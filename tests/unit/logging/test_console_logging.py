from __future__ import annotations

import io
import json
import logging

from mcp_boilerplate.logging import configure_logging


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def test_text_logging_goes_to_given_stream() -> None:
    stream = io.StringIO()
    logger = configure_logging(level="INFO", fmt="text", stream=stream)
    try:
        logging.getLogger("mcp_boilerplate.tools.dispatcher").info("hello %s", "operator")
        logging.getLogger("mcp_boilerplate.tools.dispatcher").debug("hidden")
    finally:
        _reset(logger)

    output = stream.getvalue()
    assert "INFO mcp_boilerplate.tools.dispatcher: hello operator" in output
    assert "hidden" not in output


def test_json_logging_includes_exception() -> None:
    stream = io.StringIO()
    logger = configure_logging(level="DEBUG", fmt="json", stream=stream)
    try:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logging.getLogger("mcp_boilerplate.server").exception("failed")
    finally:
        _reset(logger)

    record = json.loads(stream.getvalue().splitlines()[0])
    assert record["level"] == "ERROR"
    assert record["logger"] == "mcp_boilerplate.server"
    assert record["message"] == "failed"
    assert "RuntimeError: boom" in record["exception"]


def test_reconfiguring_replaces_handler() -> None:
    first = io.StringIO()
    second = io.StringIO()
    configure_logging(stream=first)
    logger = configure_logging(stream=second)
    try:
        logging.getLogger("mcp_boilerplate").warning("once")
        handler_count = len(logger.handlers)
    finally:
        _reset(logger)

    assert handler_count == 1
    assert first.getvalue() == ""
    assert "once" in second.getvalue()
