"""Documented default rate limits, used to emulate deletion.

The values live in ``ratelimit_provider/data/default_limits.json`` so they can
be reviewed and replaced without touching matching or update logic. A custom
file can be supplied through ``APP_DEFAULT_LIMITS_PATH``.

Lookup never fails: exact model key, then the ``"default"`` entry, then a
built-in entry with every ceiling set high enough to be effectively
unlimited.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, Field, ValidationError

from ratelimit_provider.core.config import settings
from ratelimit_provider.core.errors import ValidationAppError
from ratelimit_provider.schemas.rate_limit import LIMIT_FIELDS, DefaultLimitEntry, DefaultsSource

logger = logging.getLogger(__name__)

PACKAGED_DEFAULTS_PATH = Path(__file__).resolve().parents[1] / "data" / "default_limits.json"
DEFAULT_ENTRY_KEY = "default"
FALLBACK_LIMIT_VALUE = 1_000_000

FALLBACK_ENTRY = DefaultLimitEntry(**{name: FALLBACK_LIMIT_VALUE for name in LIMIT_FIELDS})


class _DefaultLimitsFile(BaseModel):
    description: str | None = None
    updated: str | None = None
    models: dict[str, DefaultLimitEntry] = Field(default_factory=dict)


class DefaultLimitTable:
    """Read-only mapping of model name to documented default ceilings."""

    def __init__(self, entries: Mapping[str, DefaultLimitEntry], *, source: str = "<memory>") -> None:
        self._entries: Mapping[str, DefaultLimitEntry] = MappingProxyType(dict(entries))
        self.source = source

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"DefaultLimitTable(source={self.source!r}, models={len(self._entries)})"

    def __contains__(self, model: object) -> bool:
        return model in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Mapping[str, DefaultLimitEntry]:
        return self._entries

    def lookup_with_source(self, model: str) -> tuple[DefaultLimitEntry, DefaultsSource]:
        """Return the entry for ``model`` and which level of the lookup supplied it; never raises."""

        entry = self._entries.get(model)
        if entry is not None:
            return entry, "model"

        entry = self._entries.get(DEFAULT_ENTRY_KEY)
        if entry is not None:
            return entry, "default"

        return FALLBACK_ENTRY, "fallback"


def load_default_table(path: str | Path | None = None) -> DefaultLimitTable:
    """Load and validate a default limits file.

    Args:
        path: JSON file to load; the packaged table when omitted.

    Returns:
        DefaultLimitTable built from the file.

    Raises:
        ValidationAppError: If the file is missing, not JSON, or malformed.
    """
    file_path = Path(path) if path else PACKAGED_DEFAULTS_PATH

    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
        parsed = _DefaultLimitsFile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ValidationAppError(
            code="default_limits_invalid",
            message=f"Could not load default rate limits from {file_path}: {exc}",
        ) from exc

    if DEFAULT_ENTRY_KEY not in parsed.models:
        logger.warning(
            "default_limits.no_default_entry",
            extra={"source": str(file_path)},
        )

    logger.debug(
        "default_limits.loaded",
        extra={
            "source": str(file_path),
            "models": len(parsed.models),
            "updated": parsed.updated,
        },
    )
    return DefaultLimitTable(parsed.models, source=str(file_path))


_table: DefaultLimitTable | None = None
_table_path: str | None = None


def get_default_table() -> DefaultLimitTable:
    """Return the process-wide table, reloading when the configured path changes."""

    global _table, _table_path

    configured = settings.app.default_limits_path
    if _table is None or _table_path != configured:
        _table = load_default_table(configured)
        _table_path = configured

    return _table
