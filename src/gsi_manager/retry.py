from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from .aws_errors import error_code
from .config import DEFAULT_ERROR_HANDLING, ErrorHandlingConfig

logger = logging.getLogger(__name__)

JITTER_RATIO = 0.2


def backoff_delay_ms(attempt: int, config: ErrorHandlingConfig) -> int:
    return min(config.base_delay_ms * (2**attempt), config.max_delay_ms)


def is_retryable_error(err: BaseException, config: ErrorHandlingConfig) -> bool:
    code = error_code(err)
    return code is not None and code in config.retryable_error_codes


def execute_with_backoff[T](
    operation: Callable[[], T],
    config: ErrorHandlingConfig = DEFAULT_ERROR_HANDLING,
    is_retryable: Callable[[BaseException], bool] | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[float, float], float] = random.uniform,
) -> T:
    """Run ``operation``, retrying classified-transient failures.

    Attempts run from 0 to ``config.max_retries`` inclusive. A failure that is
    not retryable, or that happens on the final attempt, is re-raised as is.
    Between attempts the delay is ``min(base * 2**attempt, max)`` plus up to
    20% of that capped delay as additive jitter.
    """
    attempt = 0
    while True:
        try:
            return operation()
        except Exception as err:
            retryable = is_retryable(err) if is_retryable is not None else is_retryable_error(err, config)
            if not retryable or attempt >= config.max_retries:
                raise

            delay_ms = backoff_delay_ms(attempt, config)
            delay_ms += jitter(0.0, delay_ms * JITTER_RATIO)
            logger.warning(
                "[GSI Manager] retrying after %s (attempt %d/%d, delay %.0fms)",
                error_code(err),
                attempt + 1,
                config.max_retries,
                delay_ms,
            )
            sleep(delay_ms / 1000.0)
            attempt += 1
