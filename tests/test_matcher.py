"""Tests for the ordered matching strategies."""

import pytest

from ratelimit_provider.core.errors import NotFoundAppError
from ratelimit_provider.schemas.rate_limit import RateLimitRecord
from ratelimit_provider.services.identifier import resolve_identifier
from ratelimit_provider.services.matcher import MatchStrategy, find_rate_limit, match_rate_limit


def rec(rate_limit_id: str, model: str) -> RateLimitRecord:
    return RateLimitRecord(id=rate_limit_id, model=model)


def find(catalog, identifier):
    return find_rate_limit(catalog, resolve_identifier(identifier))


class TestStrategies:
    def test_exact_id_beats_longer_model_with_same_prefix(self):
        catalog = [rec("rl-gpt-4-turbo", "gpt-4-turbo"), rec("rl-gpt-4", "gpt-4")]

        match = find(catalog, "gpt-4")

        assert match.record.id == "rl-gpt-4"
        assert match.strategy is MatchStrategy.EXACT_ID

    def test_id_prefix_matches_suffixed_id(self):
        catalog = [rec("rl-gpt-4o-xyz", "gpt-4o"), rec("rl-gpt-4-abc12345", "gpt-4")]

        match = find(catalog, "gpt-4")

        assert match.record.id == "rl-gpt-4-abc12345"
        assert match.strategy is MatchStrategy.ID_PREFIX

    def test_id_prefix_requires_hyphen_boundary(self):
        catalog = [rec("rl-gpt-4o", "gpt-4o")]

        match = find(catalog, "rl-gpt-4abc")

        assert match is None

    def test_exact_model_when_id_does_not_follow_naming(self):
        catalog = [rec("rl-legacy-1", "gpt-4o-mini"), rec("rl-legacy-2", "gpt-4o")]

        match = find(catalog, "gpt-4o")

        assert match.record.id == "rl-legacy-2"
        assert match.strategy is MatchStrategy.EXACT_MODEL

    def test_exact_model_uses_model_derived_from_suffixed_id(self):
        catalog = [rec("rl-other", "gpt-4o-mini")]

        match = find(catalog, "rl-gpt-4o-mini-zz9")

        assert match.record.model == "gpt-4o-mini"
        assert match.strategy is MatchStrategy.EXACT_MODEL

    def test_base_model_fallback(self):
        catalog = [rec("rl-x", "whisper-1"), rec("rl-y", "gpt-4o")]

        match = find(catalog, "gpt-4o-2024-11-20")

        assert match.record.id == "rl-y"
        assert match.strategy is MatchStrategy.BASE_MODEL

    def test_base_model_skipped_without_hyphen(self):
        catalog = [rec("rl-zz", "o1-pro")]

        assert find(catalog, "o1") is None

    def test_exact_model_skipped_for_empty_derived_model(self):
        catalog = [rec("rl-blank", "")]

        assert find(catalog, "rl-") is None

    def test_first_record_in_catalog_order_wins(self):
        catalog = [rec("rl-a", "gpt-4o"), rec("rl-b", "gpt-4o")]

        match = find(catalog, "gpt-4o")

        assert match.record.id == "rl-a"

    def test_earlier_strategy_wins_over_catalog_order(self):
        catalog = [rec("rl-gpt-4o-a1", "gpt-4o"), rec("rl-gpt-4o", "gpt-4o")]

        match = find(catalog, "gpt-4o")

        assert match.record.id == "rl-gpt-4o"
        assert match.strategy is MatchStrategy.EXACT_ID

    def test_empty_catalog(self):
        assert find([], "gpt-4o") is None


class TestMatchRateLimit:
    def test_returns_match(self):
        catalog = [rec("rl-gpt-4o", "gpt-4o")]

        match = match_rate_limit(catalog, "proj_1", "rl-gpt-4o")

        assert match.record.model == "gpt-4o"

    def test_not_found_carries_project_and_identifier(self):
        with pytest.raises(NotFoundAppError) as exc_info:
            match_rate_limit([rec("rl-gpt-4o", "gpt-4o")], "proj_1", "unknown-model")

        error = exc_info.value
        assert error.code == "rate_limit_not_found"
        assert error.details == {"project_id": "proj_1", "identifier": "unknown-model"}
        assert "proj_1" in error.message
        assert "unknown-model" in error.message

    def test_match_log_records_whether_an_id_was_given(self, caplog):
        catalog = [rec("rl-gpt-4o", "gpt-4o")]

        with caplog.at_level("DEBUG", logger="ratelimit_provider.services.matcher"):
            match_rate_limit(catalog, "proj_1", "rl-gpt-4o")
            match_rate_limit(catalog, "proj_1", "gpt-4o")

        matched = [r for r in caplog.records if r.getMessage() == "rate_limit.matched"]
        assert [r.id_given for r in matched] == [True, False]

    def test_not_found_log_records_whether_an_id_was_given(self, caplog):
        with caplog.at_level("INFO", logger="ratelimit_provider.services.matcher"):
            with pytest.raises(NotFoundAppError):
                match_rate_limit([], "proj_1", "rl-unknown-model")

        record = next(r for r in caplog.records if r.getMessage() == "rate_limit.not_found")
        assert record.id_given is True
        assert record.search_key == "rl-unknown-model"
