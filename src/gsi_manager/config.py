from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import ValidationError
from .props import pick_variant

DEFAULT_RETRYABLE_ERROR_CODES: frozenset[str] = frozenset(
    {
        "ThrottlingException",
        "ProvisionedThroughputExceededException",
        "LimitExceededException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "InternalServerError",
        "ServiceUnavailable",
    }
)


@dataclass(frozen=True)
class ErrorHandlingConfig:
    max_retries: int = 5
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    retryable_error_codes: frozenset[str] = field(default_factory=lambda: DEFAULT_RETRYABLE_ERROR_CODES)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValidationError("retry delays must be >= 0")


DEFAULT_ERROR_HANDLING = ErrorHandlingConfig()


@dataclass(frozen=True)
class WaiterConfig:
    initial_delay_seconds: float = 3.0
    max_delay_seconds: float = 20.0
    timeout_seconds: float = 15 * 60.0
    progress_log_interval_seconds: float = 60.0


DEFAULT_WAITER = WaiterConfig()


def merge_error_handling_config(override: Mapping[str, Any] | None = None) -> ErrorHandlingConfig:
    """Overlay a partial ``errorHandling`` property bag on the defaults.

    Keys are accepted in either casing (``maxRetries`` or ``MaxRetries``) and
    numbers may arrive as strings, as CloudFormation stringifies scalars.
    """
    if not override:
        return DEFAULT_ERROR_HANDLING

    codes = pick_variant(override, "retryableErrorCodes")
    return ErrorHandlingConfig(
        max_retries=_int_or(pick_variant(override, "maxRetries"), DEFAULT_ERROR_HANDLING.max_retries),
        base_delay_ms=_int_or(pick_variant(override, "baseDelayMs"), DEFAULT_ERROR_HANDLING.base_delay_ms),
        max_delay_ms=_int_or(pick_variant(override, "maxDelayMs"), DEFAULT_ERROR_HANDLING.max_delay_ms),
        retryable_error_codes=(
            _codes(codes) if codes is not None else DEFAULT_ERROR_HANDLING.retryable_error_codes
        ),
    )


def _int_or(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ValidationError(f"expected an integer, got {value!r}") from err


def _codes(value: Any) -> frozenset[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ValidationError("retryableErrorCodes must be a list of strings")
    return frozenset(str(code) for code in value if str(code))
