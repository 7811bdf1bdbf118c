from __future__ import annotations

from collections.abc import Iterable


class GsiManagerError(Exception):
    pass


class NotFoundError(GsiManagerError):
    pass


class ValidationError(GsiManagerError):
    def __init__(self, message: str, *, issues: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.issues = tuple(issues)

    @classmethod
    def from_issues(cls, issues: Iterable[str]) -> ValidationError:
        collected = tuple(issues)
        message = "\n- ".join(("Invalid GSI configuration detected:", *collected))
        return cls(message, issues=collected)


class WaitTimeoutError(GsiManagerError):
    def __init__(self, *, resource: str, target: str, timeout_seconds: float) -> None:
        super().__init__(f"timed out after {timeout_seconds:g}s waiting for {resource} to reach {target}")
        self.resource = resource
        self.target = target
        self.timeout_seconds = timeout_seconds


class InvalidOperationError(GsiManagerError):
    pass


class AwsError(GsiManagerError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
