from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, cast

import boto3
from botocore.config import Config

_lambda_clients: dict[tuple[str | None, str | None], Any] = {}


def create_lambda_boto3_config(
    *,
    connect_timeout: float = 2.0,
    read_timeout: float = 10.0,
    max_attempts: int = 1,
) -> Config:
    # retries are classified and delayed by gsi_manager.retry, not botocore
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )


def dynamodb_endpoint(environ: Mapping[str, str] = os.environ) -> str | None:
    """Endpoint override for DynamoDB Local, read from ``DYNAMODB_ENDPOINT``."""
    return (environ.get("DYNAMODB_ENDPOINT") or "").strip() or None


def get_lambda_dynamodb_client(
    *,
    region: str | None = None,
    endpoint_url: str | None = None,
    config: Config | None = None,
    session: Any | None = None,
) -> Any:
    """Return a DynamoDB client reused across warm invocations.

    One client is kept per ``(region, endpoint)``; the endpoint defaults to
    :func:`dynamodb_endpoint`.
    """
    endpoint = endpoint_url or dynamodb_endpoint()
    key = (region, endpoint)
    existing = _lambda_clients.get(key)
    if existing is not None:
        return existing

    sess = session or boto3.session.Session(region_name=region)
    kwargs: dict[str, Any] = {"region_name": region, "config": config or create_lambda_boto3_config()}
    if endpoint is not None:
        kwargs["endpoint_url"] = endpoint
    client = cast(Any, sess).client("dynamodb", **kwargs)

    _lambda_clients[key] = client
    return client


def _reset_lambda_clients_for_tests() -> None:
    _lambda_clients.clear()
