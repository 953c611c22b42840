# SPDX-License-Identifier: Apache-2.0
"""
Structured JSON-lines logging for the service, CLI and ledger layers.

One rotating file per component under the configured log directory. Every
record carries the element id, the component and a redacted context map;
gate decisions and ledger writes go out at the ``AUDIT`` level. The
evaluation kernel itself never logs.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

from civkernel import ELEMENT_ID
from civkernel.config import load_settings
from civkernel.interfaces.ilogger import ILogger

AUDIT_LEVEL = 25
logging.addLevelName(AUDIT_LEVEL, "AUDIT")

REDACTED = "<redacted>"
REDACTION_MARKERS = ("password", "secret", "token", "api_key", "credential")

_LOGGER_CACHE: Dict[str, "JSONLogger"] = {}


def _is_sensitive(key: str, markers: Iterable[str]) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in markers)


def redact_context(data: Mapping[str, Any], markers: Iterable[str] = REDACTION_MARKERS) -> Dict[str, Any]:
    """Mask values whose key names a secret, descending into nested mappings."""
    markers = tuple(markers)
    redacted: Dict[str, Any] = {}
    for key, value in data.items():
        if _is_sensitive(str(key), markers):
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = redact_context(value, markers)
        else:
            redacted[key] = value
    return redacted


class JSONFormatter(logging.Formatter):
    def __init__(self, component: str) -> None:
        super().__init__()
        self.component = component

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        context = dict(getattr(record, "context", {}) or {})
        if record.exc_info:
            context["exc"] = self.formatException(record.exc_info)
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "lvl": record.levelname,
            "el": ELEMENT_ID,
            "cmp": self.component,
            "msg": record.getMessage(),
            "ctx": context,
        }
        return json.dumps(payload, ensure_ascii=False, default=str)


class JSONLogger(ILogger):
    """Component logger writing one JSON object per line to ``log_path``."""

    def __init__(
        self,
        component: str = "civkernel",
        log_file: Optional[Path] = None,
        bound: Optional[Mapping[str, Any]] = None,
    ) -> None:
        settings = load_settings()
        self.component = component
        self.log_path = Path(log_file) if log_file else settings.log_dir / f"{component}.jsonl"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._bound: Dict[str, Any] = dict(bound or {})

        self._logger = logging.getLogger(f"civkernel.{component}.{abs(hash(self.log_path.absolute()))}")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._handler = self._ensure_handler(settings.log_max_bytes, settings.log_backup_count)

    def _ensure_handler(self, max_bytes: int, backup_count: int) -> RotatingFileHandler:
        target = self.log_path.absolute()
        for handler in self._logger.handlers:
            if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == target:
                return handler
        handler = RotatingFileHandler(target, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setFormatter(JSONFormatter(self.component))
        self._logger.addHandler(handler)
        return handler

    def _context(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return redact_context({**self._bound, **fields})

    def bind(self, **fields: Any) -> "JSONLogger":
        """Return a logger sharing this file whose records always carry ``fields``."""
        child = JSONLogger.__new__(JSONLogger)
        child.component = self.component
        child.log_path = self.log_path
        child._bound = {**self._bound, **fields}
        child._logger = self._logger
        child._handler = self._handler
        return child

    def info(self, msg: str, **kwargs: Any) -> None:
        self._logger.info(msg, extra={"context": self._context(kwargs)})

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._logger.warning(msg, extra={"context": self._context(kwargs)})

    def error(self, msg: str, error: Optional[Exception] = None, **kwargs: Any) -> None:
        context = self._context(kwargs)
        exc_info = None
        if isinstance(error, BaseException):
            context["error"] = repr(error)
            exc_info = (error.__class__, error, error.__traceback__)
        self._logger.error(msg, extra={"context": context}, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._logger.debug(msg, extra={"context": self._context(kwargs)})

    def audit(self, action: str, actor: str, outcome: str, **details: Any) -> None:
        context = {"action": action, "actor": actor, "outcome": outcome, **self._context(details)}
        self._logger.log(AUDIT_LEVEL, action, extra={"context": context})

    @property
    def handler(self) -> RotatingFileHandler:
        return self._handler


def get_logger(component: str = "civkernel", log_file: Optional[Path] = None) -> JSONLogger:
    """Return the cached logger for ``component``, keyed by its resolved file path.

    The path is resolved from settings on every call, so a changed
    ``CIVKERNEL_LOG_DIR`` yields a logger writing to the new directory.
    """
    path = Path(log_file) if log_file else load_settings().log_dir / f"{component}.jsonl"
    key = f"{component}:{path.absolute()}"
    logger = _LOGGER_CACHE.get(key)
    if logger is None:
        logger = JSONLogger(component=component, log_file=path)
        _LOGGER_CACHE[key] = logger
    return logger


__all__ = ["AUDIT_LEVEL", "JSONFormatter", "JSONLogger", "REDACTED", "get_logger", "redact_context"]
