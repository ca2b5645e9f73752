"""
Logging helpers for the data-provider subsystem.

Modules obtain loggers through :func:`get_logger`. The returned
:class:`ProviderLogger` carries context fields (source guid, provider, tags)
and merges them with the ``extra`` passed on each call, so a record always
holds both. :class:`StructuredLogFormatter` renders those fields as
``key=value`` pairs after the message and masks credential fields.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from copy import copy
from logging import Logger, LoggerAdapter
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Sequence, Tuple

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ENV_LEVEL = "DEX_LOG_LEVEL"
ENV_COLOR = "DEX_LOG_COLOR"

# Rendered first, in this order; remaining fields follow alphabetically.
_LEADING_FIELDS: Tuple[str, ...] = (
    "source",
    "provider",
    "phase",
    "step",
    "status",
    "method",
    "url",
    "status_code",
    "count",
    "tags",
)
_MASKED_FIELDS = frozenset({"access_token", "refresh_token", "client_secret", "code", "token"})
_MASK = "***"

_COLOURS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[95m",
}
_RESET = "\033[0m"

# Attributes every LogRecord has; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_configured = False


def _level_from(level: Optional[int | str]) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv(ENV_LEVEL) or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _colour_enabled(stream: Any) -> bool:
    preference = os.getenv(ENV_COLOR, "").strip().lower()
    if preference in {"1", "true", "yes", "on"}:
        return True
    if preference in {"0", "false", "no", "off"}:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _record_fields(record: logging.LogRecord) -> Iterator[Tuple[str, Any]]:
    fields = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None}
    for key in _LEADING_FIELDS:
        if key in fields:
            yield key, fields.pop(key)
    yield from sorted(fields.items())


def _render(key: str, value: Any) -> str:
    if key in _MASKED_FIELDS:
        return _MASK
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(_render("", item) for item in value) + "]"
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Append extra record fields as ``key=value`` pairs, optionally colouring the level."""

    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        shown = record
        colour = _COLOURS.get(record.levelno) if self.use_color else None
        if colour:
            shown = copy(record)
            shown.levelname = f"{colour}{record.levelname}{_RESET}"
        line = super().format(shown)
        fields = " ".join(f"{key}={_render(key, value)}" for key, value in _record_fields(record))
        return f"{line} | {fields}" if fields else line


class ProviderLogger(LoggerAdapter):
    """
    Logger adapter whose context fields are merged with per-call ``extra``.

    Per-call values win over context values with the same key.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        merged: Dict[str, Any] = dict(self.extra or {})
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs

    def bind(self, *, tags: Sequence[str] = (), **fields: Any) -> "ProviderLogger":
        """Return a child logger with extra context; this logger is left untouched."""

        context: Dict[str, Any] = dict(self.extra or {})
        context.update({key: value for key, value in fields.items() if value is not None})
        if tags:
            context["tags"] = tuple(dict.fromkeys((*context.get("tags", ()), *tags)))
        return ProviderLogger(self.logger, context)


def configure_logging(level: Optional[int | str] = None, *, force: bool = False) -> None:
    """
    Install the structured stderr handler on the root logger.

    Parameters
    ----------
    level:
        Level name or number. Falls back to ``DEX_LOG_LEVEL``, then ``INFO``.
    force:
        Replace existing root handlers even when logging is already configured.
    """

    global _configured
    if _configured and not force:
        return
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(StructuredLogFormatter(use_color=_colour_enabled(handler.stream)))
    logging.basicConfig(level=_level_from(level), handlers=[handler], force=force)
    _configured = True


def get_logger(
    name: str,
    *,
    level: Optional[int | str] = None,
    tags: Optional[Sequence[str]] = None,
    extra: Optional[Mapping[str, object]] = None,
) -> ProviderLogger:
    """
    Return a :class:`ProviderLogger` for ``name``.

    Parameters
    ----------
    name:
        Logger namespace, typically ``__name__``.
    level:
        Optional per-logger level override.
    tags:
        Observability tags attached to every record.
    extra:
        Context fields attached to every record. ``None`` values are dropped.
    """

    configure_logging()
    base: Logger = logging.getLogger(name)
    if level is not None:
        base.setLevel(_level_from(level))
    return ProviderLogger(base, {}).bind(tags=tags or (), **dict(extra or {}))


def bind_tags(logger: ProviderLogger, tags: Sequence[str]) -> ProviderLogger:
    """Return a child of ``logger`` carrying additional, de-duplicated tags."""

    return logger.bind(tags=tags)


def log_progress(
    logger: LoggerAdapter | Logger,
    message: str,
    *,
    phase: Optional[str] = None,
    step: Optional[str] = None,
    status: Optional[str] = None,
    result: Optional[str] = None,
    level: int = logging.INFO,
    extra: Optional[Mapping[str, object]] = None,
) -> None:
    """Emit a progress record carrying phase/step/status/result fields."""

    fields: Dict[str, object] = dict(extra or {})
    fields.update({key: value for key, value in (("phase", phase), ("step", step), ("status", status), ("result", result)) if value})
    logger.log(level, message, extra=fields or None)
