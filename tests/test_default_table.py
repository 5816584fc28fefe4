"""Tests for the default rate limit table and its loader."""

import json

import pytest

from ratelimit_provider.core.config import settings
from ratelimit_provider.core.errors import ValidationAppError
from ratelimit_provider.schemas.rate_limit import DefaultLimitEntry
from ratelimit_provider.services import default_table as default_table_module
from ratelimit_provider.services.default_table import (
    FALLBACK_ENTRY,
    DefaultLimitTable,
    get_default_table,
    load_default_table,
)


class TestPackagedTable:
    def test_contains_default_entry(self, default_table: DefaultLimitTable):
        assert "default" in default_table
        assert len(default_table) > 50

    def test_known_model_values(self, default_table: DefaultLimitTable):
        entry = default_table.lookup_with_source("dall-e-3")[0]

        assert entry.max_requests_per_minute == 7500
        assert entry.max_images_per_minute == 15
        assert entry.max_audio_megabytes_per_minute is None

    def test_fine_tuned_key_is_well_formed(self, default_table: DefaultLimitTable):
        assert "ft:gpt-4-0613" in default_table
        assert not any("\t" in key for key in default_table.entries)

    def test_entries_are_read_only(self, default_table: DefaultLimitTable):
        with pytest.raises(TypeError):
            default_table.entries["new"] = FALLBACK_ENTRY  # type: ignore[index]


class TestLookup:
    def test_model_source(self, default_table: DefaultLimitTable):
        entry, source = default_table.lookup_with_source("gpt-4o")

        assert source == "model"
        assert entry.max_requests_per_minute == 10000

    def test_unknown_model_uses_default_entry(self, default_table: DefaultLimitTable):
        entry, source = default_table.lookup_with_source("not-a-real-model")

        assert source == "default"
        assert entry.max_requests_per_minute == 3000
        assert entry.max_tokens_per_minute == 250000

    def test_without_default_entry_uses_fallback(self):
        table = DefaultLimitTable({"gpt-4o": DefaultLimitEntry(max_requests_per_minute=1)})

        entry, source = table.lookup_with_source("unknown")

        assert source == "fallback"
        assert entry is FALLBACK_ENTRY
        assert entry.limits() == {
            "max_requests_per_minute": 1_000_000,
            "max_tokens_per_minute": 1_000_000,
            "max_images_per_minute": 1_000_000,
            "max_audio_megabytes_per_minute": 1_000_000,
            "max_requests_per_day": 1_000_000,
            "batch_daily_max_input_tokens": 1_000_000,
        }

    def test_empty_table_never_fails(self):
        assert DefaultLimitTable({}).lookup_with_source("anything") == (FALLBACK_ENTRY, "fallback")


class TestLoadDefaultTable:
    def test_loads_custom_file(self, tmp_path):
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"models": {"my-model": {"max_requests_per_minute": 7}}}))

        table = load_default_table(path)

        assert table.lookup_with_source("my-model")[0].max_requests_per_minute == 7
        assert table.source == str(path)

    def test_accepts_wire_field_names(self, tmp_path):
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"models": {"m": {"max_requests_per_1_minute": 9}}}))

        assert load_default_table(path).lookup_with_source("m")[0].max_requests_per_minute == 9

    def test_unknown_field_rejected(self, tmp_path):
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"models": {"m": {"max_bananas": 1}}}))

        with pytest.raises(ValidationAppError) as exc_info:
            load_default_table(path)

        assert exc_info.value.code == "default_limits_invalid"

    def test_negative_value_rejected(self, tmp_path):
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"models": {"m": {"max_requests_per_minute": -1}}}))

        with pytest.raises(ValidationAppError) as exc_info:
            load_default_table(path)

        assert exc_info.value.code == "default_limits_invalid"

    def test_invalid_json_rejected(self, tmp_path):
        path = tmp_path / "limits.json"
        path.write_text("{not json")

        with pytest.raises(ValidationAppError):
            load_default_table(path)

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(ValidationAppError):
            load_default_table(tmp_path / "missing.json")


class TestGetDefaultTable:
    def test_reloads_when_configured_path_changes(self, tmp_path, monkeypatch):
        path = tmp_path / "limits.json"
        path.write_text(json.dumps({"models": {"only-model": {"max_requests_per_day": 1}}}))
        monkeypatch.setattr(default_table_module, "_table", None)
        monkeypatch.setattr(settings.app, "default_limits_path", None)

        packaged = get_default_table()
        assert get_default_table() is packaged
        assert "gpt-4o" in packaged

        monkeypatch.setattr(settings.app, "default_limits_path", str(path))
        custom = get_default_table()

        assert custom is not packaged
        assert "only-model" in custom
        assert "gpt-4o" not in custom
