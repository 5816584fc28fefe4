"""Match a resolved identifier against a project's rate limit catalog.

Strategies run in a fixed order and the first one that finds a record wins.
Within a strategy, the first record in catalog order is returned; the
platform keeps one record per model per project, so ties are not expected
and are not broken any further.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Sequence

from ratelimit_provider.core.errors import NotFoundAppError
from ratelimit_provider.schemas.rate_limit import RateLimitRecord
from ratelimit_provider.services.identifier import ResolvedIdentifier, resolve_identifier

logger = logging.getLogger(__name__)


class MatchStrategy(str, Enum):
    EXACT_ID = "exact_id"
    ID_PREFIX = "id_prefix"
    EXACT_MODEL = "exact_model"
    BASE_MODEL = "base_model"


@dataclass(frozen=True)
class RateLimitMatch:
    """A catalog record together with the strategy that selected it."""

    record: RateLimitRecord
    strategy: MatchStrategy


Predicate = Callable[[RateLimitRecord], bool]


def _exact_id(resolved: ResolvedIdentifier) -> Predicate | None:
    return lambda record: record.id == resolved.search_key


def _id_prefix(resolved: ResolvedIdentifier) -> Predicate | None:
    # Trailing "-" keeps rl-gpt-4 from matching rl-gpt-4o
    prefix = resolved.search_key + "-"
    return lambda record: record.id == resolved.search_key or record.id.startswith(prefix)


def _exact_model(resolved: ResolvedIdentifier) -> Predicate | None:
    if not resolved.derived_model:
        return None
    return lambda record: record.model == resolved.derived_model


def _base_model(resolved: ResolvedIdentifier) -> Predicate | None:
    if "-" not in resolved.derived_model:
        return None
    base = resolved.derived_model.split("-", 1)[0]
    return lambda record: record.model.startswith(base)


STRATEGIES: tuple[tuple[MatchStrategy, Callable[[ResolvedIdentifier], Predicate | None]], ...] = (
    (MatchStrategy.EXACT_ID, _exact_id),
    (MatchStrategy.ID_PREFIX, _id_prefix),
    (MatchStrategy.EXACT_MODEL, _exact_model),
    (MatchStrategy.BASE_MODEL, _base_model),
)


def _first(records: Iterable[RateLimitRecord], predicate: Predicate) -> RateLimitRecord | None:
    return next((record for record in records if predicate(record)), None)


def find_rate_limit(
    catalog: Sequence[RateLimitRecord],
    resolved: ResolvedIdentifier,
) -> RateLimitMatch | None:
    """Run the matching strategies in order against ``catalog``.

    Args:
        catalog: Records in the order the platform returned them.
        resolved: Output of ``resolve_identifier``.

    Returns:
        The first match, or None when no strategy finds a record.
    """
    for strategy, build_predicate in STRATEGIES:
        predicate = build_predicate(resolved)
        if predicate is None:
            continue
        record = _first(catalog, predicate)
        if record is not None:
            return RateLimitMatch(record=record, strategy=strategy)
    return None


def match_rate_limit(
    catalog: Sequence[RateLimitRecord],
    project_id: str,
    identifier: str,
) -> RateLimitMatch:
    """Resolve ``identifier`` to exactly one record of ``catalog``.

    Args:
        catalog: The project's rate limit records.
        project_id: Project the catalog belongs to (for diagnostics).
        identifier: Model name or rate limit id as supplied by the caller.

    Returns:
        RateLimitMatch for the selected record.

    Raises:
        NotFoundAppError: If no strategy matches.
    """
    resolved = resolve_identifier(identifier)
    match = find_rate_limit(catalog, resolved)

    if match is None:
        logger.info(
            "rate_limit.not_found",
            extra={
                "identifier": identifier,
                "id_given": resolved.is_rate_limit_id,
                "search_key": resolved.search_key,
                "derived_model": resolved.derived_model,
                "catalog_size": len(catalog),
            },
        )
        raise NotFoundAppError(
            code="rate_limit_not_found",
            message=(
                f"Project with ID '{project_id}' not found or rate limit "
                f"'{identifier}' does not exist"
            ),
            details={"project_id": project_id, "identifier": identifier},
        )

    logger.debug(
        "rate_limit.matched",
        extra={
            "identifier": identifier,
            "id_given": resolved.is_rate_limit_id,
            "strategy": match.strategy.value,
            "rate_limit_id": match.record.id,
            "model": match.record.model,
        },
    )
    return match
