"""
Logging helpers: identity/role tagging and per-task log context.

TabageLogFilter derives a readable identity and role from the logger name
(module suffix convention: _svc, _wf, _comp, _helper, _dto, _if) and injects
context values set with set_log_context(). Context lives in a ContextVar so
concurrent asyncio tasks never see each other's values.
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s %(tabage_identity_tag)s %(tabage_role_tag)s %(context_str)s%(message)s"

_ROLE_SUFFIXES = {
    "_svc": "[Service]",
    "_wf": "[Workflow]",
    "_comp": "[Component]",
    "_helper": "[Helper]",
    "_dto": "[DTO]",
    "_if": "[Interface]",
}

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar("tabage_log_context", default=None)


def set_log_context(**values: Any) -> None:
    """Add key/value pairs to the log context of the current task."""
    current = dict(_log_context.get() or {})
    current.update(values)
    _log_context.set(current)


def clear_log_context() -> None:
    """Drop all log context for the current task."""
    _log_context.set(None)


def _identity_and_role(name: str) -> tuple[str, str]:
    leaf = name.rsplit(".", 1)[-1]
    for suffix, role in _ROLE_SUFFIXES.items():
        if leaf.endswith(suffix):
            stem = leaf[: -len(suffix)]
            if not stem:
                break
            identity = " ".join(part.capitalize() for part in stem.split("_") if part)
            return f"[{identity}]", role
    return name, ""


class TabageLogFilter(logging.Filter):
    """Attach identity, role and context attributes to every record. Never suppresses."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            identity, role = _identity_and_role(str(record.name or ""))
        except Exception:
            identity, role = str(getattr(record, "name", "")), ""
        record.tabage_identity_tag = identity
        record.tabage_role_tag = role
        context = _log_context.get()
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in context.items())
            record.context_str = f"[{pairs}] "
        else:
            record.context_str = ""
        return True


def configure_logging(level: int = logging.INFO, log_dir: str | None = None) -> None:
    """
    Configure root logging once for the whole process.

    Args:
        level: Root log level
        log_dir: If set, also write to a rotating ``tabage.log`` in this directory
    """
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(TabageLogFilter())
    handlers: list[logging.Handler] = [console_handler]

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / "tabage.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(TabageLogFilter())
        handlers.append(file_handler)

    # force=True clears handlers installed by earlier imports (uvicorn, pytest)
    logging.basicConfig(level=level, handlers=handlers, force=True)
