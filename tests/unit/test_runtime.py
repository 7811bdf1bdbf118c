from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gsi_manager.runtime import (
    _reset_lambda_clients_for_tests,
    create_lambda_boto3_config,
    dynamodb_endpoint,
    get_lambda_dynamodb_client,
)


class FakeSession:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def client(self, service_name: str, **kwargs: object) -> object:
        self.calls.append({"service_name": service_name, **kwargs})
        return {"created_at": datetime.now(tz=UTC).isoformat(), "region": kwargs.get("region_name")}


@pytest.fixture(autouse=True)
def _fresh_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DYNAMODB_ENDPOINT", raising=False)
    _reset_lambda_clients_for_tests()


def test_create_lambda_boto3_config() -> None:
    cfg = create_lambda_boto3_config(connect_timeout=2.0, read_timeout=4.0)
    assert cfg.connect_timeout == 2.0
    assert cfg.read_timeout == 4.0
    assert cfg.retries["max_attempts"] == 1
    assert cfg.retries["mode"] == "standard"


def test_dynamodb_endpoint() -> None:
    assert dynamodb_endpoint({}) is None
    assert dynamodb_endpoint({"DYNAMODB_ENDPOINT": "  "}) is None
    assert dynamodb_endpoint({"DYNAMODB_ENDPOINT": "http://localhost:8000"}) == "http://localhost:8000"


def test_get_lambda_dynamodb_client_caches_per_region() -> None:
    sess = FakeSession()

    c1 = get_lambda_dynamodb_client(region="us-east-1", session=sess)
    c2 = get_lambda_dynamodb_client(region="us-east-1", session=sess)
    c3 = get_lambda_dynamodb_client(region="eu-west-1", session=sess)

    assert c1 is c2
    assert c3 is not c1
    assert [call["service_name"] for call in sess.calls] == ["dynamodb", "dynamodb"]
    assert sess.calls[0]["region_name"] == "us-east-1"
    assert "endpoint_url" not in sess.calls[0]


def test_get_lambda_dynamodb_client_uses_endpoint_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DYNAMODB_ENDPOINT", "http://localhost:8000")
    sess = FakeSession()

    get_lambda_dynamodb_client(region="us-east-1", session=sess)

    assert sess.calls[0]["endpoint_url"] == "http://localhost:8000"
