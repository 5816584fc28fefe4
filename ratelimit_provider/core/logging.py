"""Structured logging for the rate limit provider.

Log lines are single JSON objects. Two pieces of per-operation context are
carried through ``contextvars`` and stamped on every record:

- ``request_id``: set by the HTTP middleware
- ``project_id``: set by the service for the duration of one operation

OpenAI credentials must never reach a log sink. Extras whose key names a
credential are replaced wholesale, and any string value that looks like an
OpenAI key (``sk-...``) is masked wherever it appears, since upstream error
messages can echo the key that was sent.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from ratelimit_provider.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "admin_api_key",
        "openai_admin_api_key",
        "x-openai-api-key",
        "authorization",
        "credentials",
        "token",
        "secret",
        "password",
        "cookie",
        "set-cookie",
    }
)

# sk-..., sk-proj-..., sk-admin-... followed by a key body
_OPENAI_KEY_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_\-]{8,}")

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_project_id: ContextVar[str | None] = ContextVar("project_id", default=None)

# Record attribute name -> context variable it is filled from
_CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    "request_id": _request_id,
    "project_id": _project_id,
}

# Built-in LogRecord attributes; everything else on a record came from `extra`
_RECORD_BUILTINS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def set_request_id(request_id: str | None) -> None:
    _request_id.set(request_id)


def get_request_id() -> str | None:
    return _request_id.get()


def clear_request_id() -> None:
    _request_id.set(None)


def get_project_id() -> str | None:
    return _project_id.get()


@contextmanager
def project_context(project_id: str | None) -> Iterator[None]:
    """Tag every log record emitted inside the block with ``project_id``."""

    token = _project_id.set(project_id)
    try:
        yield
    finally:
        _project_id.reset(token)


def fingerprint(secret: str | None) -> str | None:
    """Short, non-reversible fingerprint of a credential for log correlation."""

    if not secret:
        return None
    return hashlib.sha256(secret.encode()).hexdigest()[:16]


def mask_credentials(text: str) -> str:
    """Mask anything shaped like an OpenAI API key inside ``text``.

    Examples:
        >>> mask_credentials("401 for key sk-admin-abcdef123456")
        '401 for key sk-[REDACTED]'
    """

    return _OPENAI_KEY_PATTERN.sub("sk-" + REDACTED, text)


def redact(value: Any, credential_keys: frozenset[str] = CREDENTIAL_KEYS) -> Any:
    """Return ``value`` with credentials removed, recursing into containers.

    Args:
        value: A log extra (scalar, mapping or sequence).
        credential_keys: Lower-case key names whose values are dropped entirely.
    """

    if isinstance(value, str):
        return mask_credentials(value)
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in credential_keys else redact(item, credential_keys)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return type(value)(redact(item, credential_keys) for item in value)
    return value


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """The caller-supplied ``extra`` fields of ``record``."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_BUILTINS and not key.startswith("_")
    }


class ContextFilter(logging.Filter):
    """Fill request_id / project_id from context when the record lacks them."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for name, var in _CONTEXT_FIELDS.items():
            if getattr(record, name, None) is None and (value := var.get()):
                setattr(record, name, value)
        return True


class RedactionFilter(logging.Filter):
    """Strip credentials from the message and extras before any handler formats them."""

    def __init__(self, credential_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.credential_keys = frozenset(
            key.lower() for key in (credential_keys or CREDENTIAL_KEYS)
        )

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if isinstance(record.msg, str):
            record.msg = mask_credentials(record.msg)
        if record.args:
            record.args = redact(record.args, self.credential_keys)
        for key, value in record_extras(record).items():
            if key.lower() in self.credential_keys:
                setattr(record, key, REDACTED)
            else:
                setattr(record, key, redact(value, self.credential_keys))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: fixed envelope, context ids, then extras."""

    def __init__(self, *, ensure_ascii: bool = True) -> None:
        super().__init__()
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name, var in _CONTEXT_FIELDS.items():
            value = getattr(record, name, None) or var.get()
            if value:
                payload[name] = value

        payload.update(
            (key, value) for key, value in record_extras(record).items() if key not in payload
        )

        if record.exc_info:
            payload["exc_info"] = mask_credentials(self.formatException(record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/ratelimit_provider.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the single root handler (JSON or plain, stdout or file).

    ``APP_DEBUG`` forces DEBUG regardless of ``LOG_LEVEL``.

    Args:
        log_settings: Overrides the global log settings.
    """

    cfg = log_settings or settings.log
    level = logging.DEBUG if settings.app.debug else logging.getLevelName(cfg.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = _build_handler(cfg)
    handler.addFilter(ContextFilter())
    handler.addFilter(RedactionFilter())
    if cfg.format.lower() == "plain":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # The SDK logs full request options (headers included) at debug level
    logging.getLogger("openai").setLevel(max(level, logging.INFO))
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    # uvicorn installs its own handlers; keep its lines from being emitted twice
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
