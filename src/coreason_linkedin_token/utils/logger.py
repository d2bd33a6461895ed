# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_linkedin_token

"""
Loguru setup for the LinkedIn token strategy.

Provider calls carry the bearer token in the query string, so every record is
passed through `redact_tokens` and the HTTP client loggers are held at WARNING.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from opentelemetry import trace

__all__ = ["logger", "configure_logging", "redact_tokens"]

# Loggers that echo full request URLs at INFO
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")

_TOKEN_PARAM = re.compile(r"\b((?:oauth2_)?access_token|refresh_token)=[^&\s\"'#]+")

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "trace={extra[trace_id]} - "
    "<level>{message}</level>"
)


def redact_tokens(text: str) -> str:
    """
    Replaces the value of any `access_token`, `oauth2_access_token` or `refresh_token` parameter.
    """
    return _TOKEN_PARAM.sub(r"\1=<REDACTED>", text)


class InterceptHandler(logging.Handler):
    """
    Redirects standard logging messages (httpx, opentelemetry) to Loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename in (logging.__file__, __file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def patch_record(record: dict[str, Any]) -> None:
    """
    Loguru patcher: redacts tokens from the message and attaches the active trace/span ids.
    """
    record["message"] = redact_tokens(record["message"])

    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        record["extra"]["trace_id"] = format(ctx.trace_id, "032x")
        record["extra"]["span_id"] = format(ctx.span_id, "016x")


def configure_logging() -> None:
    """
    Configures the logger from environment variables.

    - COREASON_LINKEDIN_LOG_LEVEL: level name, INFO when unset or unknown.
    - COREASON_LINKEDIN_LOG_JSON: `true` serializes console output.
    - COREASON_LINKEDIN_LOG_FILE: JSON file sink path, `logs/linkedin_token.log` by default,
      empty to disable.
    """
    log_level = os.getenv("COREASON_LINKEDIN_LOG_LEVEL", "INFO").upper()
    log_json = os.getenv("COREASON_LINKEDIN_LOG_JSON", "false").lower() == "true"
    log_file = os.getenv("COREASON_LINKEDIN_LOG_FILE", "logs/linkedin_token.log")

    try:
        logger.level(log_level)
    except ValueError:
        log_level = "INFO"

    logger.configure(
        handlers=[],
        extra={"trace_id": "-", "span_id": "-"},
        patcher=patch_record,  # type: ignore[arg-type]
    )

    if log_json:
        logger.add(sys.stdout, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, level=log_level, format=_TEXT_FORMAT)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            logger.add(log_file, rotation="100 MB", retention="7 days", serialize=True, enqueue=True, level=log_level)
        except (PermissionError, OSError):
            logger.warning(f"File logging disabled, cannot write to {log_file}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    numeric_level = logging.getLevelName(log_level)
    logging.getLogger().setLevel(numeric_level if isinstance(numeric_level, int) else logging.INFO)

    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()
