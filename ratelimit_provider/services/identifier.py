"""Classification of caller-supplied rate limit identifiers.

Callers may name a rate limit by model (``gpt-4o-mini``) or by id, with or
without the opaque per-project suffix the platform appends
(``rl-gpt-4o-mini`` / ``rl-gpt-4o-mini-a1b2c3d4``). This module turns that
string into the search key and model name the matcher works with.

Compatibility note: the suffix check is a length heuristic. A model whose
last hyphen-separated segment has 8 characters or fewer is indistinguishable
from one carrying a suffix, so ``rl-gpt-4`` derives the model ``gpt``.
Existing callers rely on this behaviour; changing it changes which record an
id resolves to.
"""

from __future__ import annotations

from dataclasses import dataclass

from ratelimit_provider.core.errors import ValidationAppError

RATE_LIMIT_ID_PREFIX = "rl-"
MAX_PROJECT_SUFFIX_LENGTH = 8


@dataclass(frozen=True)
class ResolvedIdentifier:
    """Search inputs derived from a raw identifier.

    Attributes:
        raw: The identifier exactly as supplied.
        search_key: Rate limit id to look for (always ``rl-`` prefixed).
        derived_model: Best-guess canonical model name ("" when none).
        is_rate_limit_id: True when the input carried the ``rl-`` prefix.
    """

    raw: str
    search_key: str
    derived_model: str
    is_rate_limit_id: bool


def looks_like_project_suffix(segment: str) -> bool:
    """Return True when an id segment looks like the platform's project suffix.

    Args:
        segment: Final hyphen-separated segment of a rate limit id.
    """
    return 0 < len(segment) <= MAX_PROJECT_SUFFIX_LENGTH


def resolve_identifier(raw: str) -> ResolvedIdentifier:
    """Classify ``raw`` as a model name or a (possibly partial) rate limit id.

    Args:
        raw: Model name or rate limit id.

    Returns:
        ResolvedIdentifier with the search key and derived model.

    Examples:
        >>> resolve_identifier("gpt-4o").search_key
        'rl-gpt-4o'
        >>> resolve_identifier("rl-gpt-4o-mini-a1b2c3d4").derived_model
        'gpt-4o-mini'
    """
    if not raw.startswith(RATE_LIMIT_ID_PREFIX):
        return ResolvedIdentifier(
            raw=raw,
            search_key=RATE_LIMIT_ID_PREFIX + raw,
            derived_model=raw,
            is_rate_limit_id=False,
        )

    segments = raw[len(RATE_LIMIT_ID_PREFIX):].split("-")
    if len(segments) > 1 and looks_like_project_suffix(segments[-1]):
        segments = segments[:-1]

    return ResolvedIdentifier(
        raw=raw,
        search_key=raw,
        derived_model="-".join(segments),
        is_rate_limit_id=True,
    )


def parse_import_id(import_id: str) -> tuple[str, str]:
    """Split an import id of the form ``project_id:identifier``.

    Only the first ``:`` separates the parts, so fine-tuned model names such
    as ``ft:gpt-4o-mini-2024-07-18`` survive intact.

    Args:
        import_id: Composite id, e.g. ``proj_abc123:rl-gpt-4-abc123``.

    Returns:
        Tuple of (project_id, identifier).

    Raises:
        ValidationAppError: If either part is missing.
    """
    project_id, sep, identifier = import_id.partition(":")
    project_id, identifier = project_id.strip(), identifier.strip()
    if not sep or not project_id or not identifier:
        raise ValidationAppError(
            code="invalid_import_id",
            message="Invalid import id, expected 'project_id:rate_limit_id' (e.g. proj_abc123:rl-gpt-4-abc123)",
            details={"identifier": import_id},
        )
    return project_id, identifier
