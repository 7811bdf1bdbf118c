from __future__ import annotations

from botocore.exceptions import ClientError

from .errors import AwsError, NotFoundError, ValidationError


def error_code(err: BaseException) -> str | None:
    """Return the store error code carried by ``err``.

    The structured code wins: botocore's ``response["Error"]["Code"]`` or a
    string ``code`` attribute (``AwsError``). Failing that the exception's
    name is used, so generic failures can still be listed as retryable.
    """
    if isinstance(err, ClientError):
        code = str(err.response.get("Error", {}).get("Code", ""))
        if code:
            return code

    code_attr = getattr(err, "code", None)
    if isinstance(code_attr, str) and code_attr:
        return code_attr

    name = type(err).__name__
    return name or None


def map_client_error(err: ClientError) -> Exception:
    code = str(err.response.get("Error", {}).get("Code", ""))
    message = str(err.response.get("Error", {}).get("Message", ""))

    if code == "ResourceNotFoundException":
        return NotFoundError(message or "resource not found")
    if code == "ValidationException":
        return ValidationError(message or "validation failed")

    return AwsError(code=code or "UnknownError", message=message or str(err))
