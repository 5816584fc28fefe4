"""Pydantic schemas for OpenAI project rate limits.

The remote API names its ceilings ``max_requests_per_1_minute`` and so on.
Python code uses the shorter names below; both spellings are accepted on input
and ``WIRE_FIELD_NAMES`` is the single place that maps one to the other.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


WIRE_FIELD_NAMES: dict[str, str] = {
    "max_requests_per_minute": "max_requests_per_1_minute",
    "max_tokens_per_minute": "max_tokens_per_1_minute",
    "max_images_per_minute": "max_images_per_1_minute",
    "max_audio_megabytes_per_minute": "max_audio_megabytes_per_1_minute",
    "max_requests_per_day": "max_requests_per_1_day",
    "batch_daily_max_input_tokens": "batch_1_day_max_input_tokens",
}

LIMIT_FIELDS: tuple[str, ...] = tuple(WIRE_FIELD_NAMES)


def _limit_field(description: str, name: str, *, ge: int | None = None) -> Any:
    return Field(
        None,
        ge=ge,
        description=description,
        validation_alias=AliasChoices(name, WIRE_FIELD_NAMES[name]),
    )


class RateLimitFields(BaseModel):
    """The six numeric ceilings shared by records, updates and defaults.

    ``None`` means the ceiling is unlimited or does not apply to the model.
    """

    max_requests_per_minute: int | None = _limit_field(
        "Maximum API requests per minute.", "max_requests_per_minute"
    )
    max_tokens_per_minute: int | None = _limit_field(
        "Maximum tokens processed per minute.", "max_tokens_per_minute"
    )
    max_images_per_minute: int | None = _limit_field(
        "Maximum images generated per minute.", "max_images_per_minute"
    )
    max_audio_megabytes_per_minute: int | None = _limit_field(
        "Maximum audio megabytes processed per minute.", "max_audio_megabytes_per_minute"
    )
    max_requests_per_day: int | None = _limit_field(
        "Maximum API requests per day.", "max_requests_per_day"
    )
    batch_daily_max_input_tokens: int | None = _limit_field(
        "Maximum batch input tokens per day.", "batch_daily_max_input_tokens"
    )

    def limits(self) -> dict[str, int]:
        """Return only the ceilings that have a value."""

        return {
            name: value
            for name in LIMIT_FIELDS
            if (value := getattr(self, name)) is not None
        }


class RateLimitRecord(RateLimitFields):
    """A project's stored rate limit configuration for one model."""

    id: str = Field(..., description="Platform-assigned id, e.g. 'rl-gpt-4o' or 'rl-gpt-4o-a1b2c3'.")
    model: str = Field(..., description="Canonical model name the limits apply to.")


class RateLimitPage(BaseModel):
    """One page of the project rate limit catalog as returned by the list endpoint."""

    object: str = "list"
    data: list[RateLimitRecord] = Field(default_factory=list)
    first_id: str | None = None
    last_id: str | None = None
    has_more: bool = False


class RateLimitUpdate(RateLimitFields):
    """Sparse update request.

    A field counts as provided only when it was explicitly set to a value,
    which includes ``0``. Omitted fields and explicit ``None`` are left
    untouched on the remote record.
    """

    model_config = ConfigDict(extra="forbid")

    max_requests_per_minute: int | None = _limit_field(
        "New requests-per-minute ceiling.", "max_requests_per_minute", ge=0
    )
    max_tokens_per_minute: int | None = _limit_field(
        "New tokens-per-minute ceiling.", "max_tokens_per_minute", ge=0
    )
    max_images_per_minute: int | None = _limit_field(
        "New images-per-minute ceiling.", "max_images_per_minute", ge=0
    )
    max_audio_megabytes_per_minute: int | None = _limit_field(
        "New audio-megabytes-per-minute ceiling.", "max_audio_megabytes_per_minute", ge=0
    )
    max_requests_per_day: int | None = _limit_field(
        "New requests-per-day ceiling.", "max_requests_per_day", ge=0
    )
    batch_daily_max_input_tokens: int | None = _limit_field(
        "New daily batch input token ceiling.", "batch_daily_max_input_tokens", ge=0
    )

    def provided(self) -> dict[str, int]:
        """Fields the caller explicitly set, keyed by Python name."""

        return self.model_dump(exclude_unset=True, exclude_none=True)

    def to_wire(self, *, name: str) -> dict[str, Any]:
        """Build the remote request body; ``name`` is mandatory on every update."""

        body: dict[str, Any] = {"name": name}
        for field_name, value in self.provided().items():
            body[WIRE_FIELD_NAMES[field_name]] = value
        return body


class DefaultLimitEntry(RateLimitFields):
    """Documented default ceilings for one model.

    Values are written back through the update endpoint on reset, so they
    obey the same lower bound as ``RateLimitUpdate``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_requests_per_minute: int | None = _limit_field(
        "Default requests-per-minute ceiling.", "max_requests_per_minute", ge=0
    )
    max_tokens_per_minute: int | None = _limit_field(
        "Default tokens-per-minute ceiling.", "max_tokens_per_minute", ge=0
    )
    max_images_per_minute: int | None = _limit_field(
        "Default images-per-minute ceiling.", "max_images_per_minute", ge=0
    )
    max_audio_megabytes_per_minute: int | None = _limit_field(
        "Default audio-megabytes-per-minute ceiling.", "max_audio_megabytes_per_minute", ge=0
    )
    max_requests_per_day: int | None = _limit_field(
        "Default requests-per-day ceiling.", "max_requests_per_day", ge=0
    )
    batch_daily_max_input_tokens: int | None = _limit_field(
        "Default daily batch input token ceiling.", "batch_daily_max_input_tokens", ge=0
    )


DefaultsSource = Literal["model", "default", "fallback"]


class RateLimitResetResponse(BaseModel):
    """Outcome of resetting a rate limit to its documented defaults."""

    reset: bool = True
    defaults_source: DefaultsSource = Field(
        ...,
        description="Which default table entry applied: the model's own, the 'default' entry, or the built-in fallback.",
    )
    rate_limit: RateLimitRecord


class RateLimitListResponse(BaseModel):
    """Rate limits visible on the first catalog page of a project.

    Records beyond the first page are not listed (see the catalog accessor).
    """

    project_id: str
    rate_limits: list[RateLimitRecord]


class RateLimitImportResponse(BaseModel):
    """Result of resolving a 'project_id:identifier' import id."""

    project_id: str
    rate_limit: RateLimitRecord
