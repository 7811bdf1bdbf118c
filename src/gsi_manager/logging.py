from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from typing import Any

_LAMBDA_TASK_PREFIX = "/var/task/"


def handler_logging[R](func: Callable[[Any, Any], R]) -> Callable[[Any, Any], R]:
    """Configure JSON log formatting for a Lambda entry point.

    Exceptions escaping the handler are logged here and re-raised, so the
    lifecycle framework still receives the failure.
    """
    # the lambda runtime installs the root handler for us
    logger = logging.getLogger()
    for log_handler in logger.handlers:
        log_handler.setFormatter(CloudWatchFormatter())

    @functools.wraps(func)
    def wrapper(event: Any, context: Any) -> R:
        try:
            return func(event, context)
        except Exception as err:
            logger.exception(str(err))
            raise

    return wrapper


class CloudWatchFormatter(logging.Formatter):
    "Format log records as one JSON document per line for CloudWatch"

    extras = ("table", "index", "request_type", "physical_id")

    def format(self, record: logging.LogRecord) -> str:
        start = len(_LAMBDA_TASK_PREFIX) if record.pathname.startswith(_LAMBDA_TASK_PREFIX) else 0
        path = record.pathname[start:]

        # set by the lambda runtime; absent when running locally
        request_id = getattr(record, "aws_request_id", None)

        data: dict[str, Any] = {
            "message": record.getMessage(),
            "level": record.levelname,
            "logger": record.name,
            "requestId": request_id,
            "sourceFile": path,
            "sourceLine": record.lineno,
        }

        for extra in self.extras:
            if hasattr(record, extra):
                data[extra] = getattr(record, extra)

        if record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
            data["exceptionInfo"] = record.exc_text.split("\n")
        if record.stack_info:
            data["stackInfo"] = record.stack_info.split("\n")
        return f"{record.levelname} RequestId: {request_id} Data: {json.dumps(data, default=str)}"
