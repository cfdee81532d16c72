"""Structured logging helpers.

Events are dotted names (``spam.burst``, ``action.timeout.failed``) with
arbitrary key/value fields, rendered either as ``event k=v`` text or as one
JSON object per line when ``LOG_JSON`` is set.
"""
from __future__ import annotations
import json as _json
import logging
import os
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "modguard"

_LOG_JSON = os.getenv("LOG_JSON") in {"1", "true", "TRUE"}


def init_logging(level: str | int = "INFO", json_output: bool | None = None):
    global _LOG_JSON  # noqa: PLW0603
    if json_output is not None:
        _LOG_JSON = json_output
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(LOGGER_NAME).setLevel(level)
    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format="%(message)s")


def _emit(level: str, event: str, **fields: Any):
    logger = logging.getLogger(LOGGER_NAME)
    lvl = getattr(logging, level.upper(), logging.INFO)
    if not logger.isEnabledFor(lvl):
        return
    if _LOG_JSON:
        record = {"ts": datetime.now(timezone.utc).isoformat(), "level": level, "event": event}
        record.update(fields)
        logger.log(lvl, _json.dumps(record, ensure_ascii=False, default=str))
    else:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        logger.log(lvl, f"{event} {extras}".strip())


def info(event: str, **fields: Any):
    _emit("INFO", event, **fields)


def warning(event: str, **fields: Any):
    _emit("WARNING", event, **fields)


def error(event: str, **fields: Any):
    _emit("ERROR", event, **fields)


def debug(event: str, **fields: Any):
    _emit("DEBUG", event, **fields)


__all__ = ["init_logging", "info", "warning", "error", "debug", "LOGGER_NAME"]
