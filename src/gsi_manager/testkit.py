from __future__ import annotations

from .mocks import FakeDynamoDBClient, SimulatedGsiTable, client_error, describe_response, index_description


def no_sleep(_: float) -> None:
    return None


def no_jitter(low: float, high: float) -> float:
    _ = high
    return low


class FakeClock:
    """Monotonic clock that only moves when slept on."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


__all__ = [
    "FakeClock",
    "FakeDynamoDBClient",
    "SimulatedGsiTable",
    "client_error",
    "describe_response",
    "index_description",
    "no_jitter",
    "no_sleep",
]
