# -*- coding: utf-8 -*-
########################
# logging_utils.py
########################
# Purpose:
# - Tagged logging helper shared by every sequencer module.
#
# Design notes:
# - Stdlib logging only. One "shapeseq" logger with a single stream handler.
# - Every message goes out as [LEVEL][Tag] message | key=value ...
# - log_event() checks the level before formatting fields, so disabled debug taps cost little.
#
########################
# Interfaces:
# Public functions:
# - log_event(level: str, tag: str, message: str, **fields: Any) -> None
# - set_log_level(level: str) -> None
# - get_log_level() -> str
#
# Inputs:
# - Level names from config.py (logging.level) or callers.
#
# Outputs:
# - Formatted records on stderr.
#
########################

from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("shapeseq")
if not _logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s][%(tag)s] %(message)s")
    handler.setFormatter(formatter)
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "Seq")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log a message with level+tag, appending key=value fields when provided."""
    level_val = getattr(logging, (level or "INFO").upper(), logging.INFO)
    if not _logger.isEnabledFor(level_val):
        return
    if fields:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        message = f"{message} | {extras}"
    _logger_adapter.log(level_val, message, tag=tag)


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG/INFO/WARNING/ERROR)."""
    level_name = (level or "INFO").upper()
    level_val = getattr(logging, level_name, logging.INFO)
    _logger.setLevel(level_val)


def get_log_level() -> str:
    return logging.getLevelName(_logger.level)
