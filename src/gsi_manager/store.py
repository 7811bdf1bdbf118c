from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import Any

import boto3
from botocore.exceptions import ClientError

from .aws_errors import map_client_error
from .config import DEFAULT_ERROR_HANDLING, DEFAULT_WAITER, ErrorHandlingConfig, WaiterConfig
from .errors import WaitTimeoutError
from .model import IndexConfiguration, IndexInfo
from .retry import execute_with_backoff

logger = logging.getLogger(__name__)


def build_attribute_definitions(config: IndexConfiguration) -> list[dict[str, str]]:
    attr_types: dict[str, str] = {}
    for attribute in (config.partition_key, config.sort_key):
        if attribute is not None:
            attr_types[attribute.name] = attribute.type
    return [{"AttributeName": name, "AttributeType": attr_type} for name, attr_type in attr_types.items()]


def build_key_schema(config: IndexConfiguration) -> list[dict[str, str]]:
    if config.partition_key is None:
        raise ValueError(f"partition_key is required: {config.index_name}")

    key_schema = [{"AttributeName": config.partition_key.name, "KeyType": "HASH"}]
    if config.sort_key is not None:
        key_schema.append({"AttributeName": config.sort_key.name, "KeyType": "RANGE"})
    return key_schema


def build_projection(config: IndexConfiguration) -> dict[str, Any]:
    projection_type = config.effective_projection_type
    proj: dict[str, Any] = {"ProjectionType": projection_type}
    if projection_type == "INCLUDE" and config.non_key_attributes:
        proj["NonKeyAttributes"] = list(config.non_key_attributes)
    return proj


def build_create_index_request(table_name: str, config: IndexConfiguration) -> dict[str, Any]:
    create: dict[str, Any] = {
        "IndexName": config.index_name,
        "KeySchema": build_key_schema(config),
        "Projection": build_projection(config),
    }
    if config.provisioned_throughput is not None:
        create["ProvisionedThroughput"] = config.provisioned_throughput.to_dynamodb()

    return {
        "TableName": table_name,
        "AttributeDefinitions": build_attribute_definitions(config),
        "GlobalSecondaryIndexUpdates": [{"Create": create}],
    }


class IndexStore:
    """DescribeTable/UpdateTable access for one table's global secondary indexes.

    Every call is wrapped in :func:`execute_with_backoff`; a ``ClientError``
    that survives the retries is mapped onto :mod:`gsi_manager.errors` and kept
    as ``__cause__``.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        error_handling: ErrorHandlingConfig = DEFAULT_ERROR_HANDLING,
        waiter: WaiterConfig = DEFAULT_WAITER,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        jitter: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._client: Any = client or boto3.client("dynamodb")
        self._error_handling = error_handling
        self._waiter = waiter
        self._sleep = sleep
        self._clock = clock
        self._jitter = jitter

    @property
    def error_handling(self) -> ErrorHandlingConfig:
        return self._error_handling

    def list_indexes(self, table_name: str) -> list[IndexInfo]:
        resp = self._describe(table_name)
        raw = resp.get("Table", {}).get("GlobalSecondaryIndexes") or []
        return [IndexInfo.from_dynamodb(gsi) for gsi in raw]

    def create_index(self, table_name: str, config: IndexConfiguration) -> None:
        self._call("update_table", build_create_index_request(table_name, config))

    def update_index(self, table_name: str, config: IndexConfiguration) -> None:
        if config.provisioned_throughput is None:
            return

        self._call(
            "update_table",
            {
                "TableName": table_name,
                "GlobalSecondaryIndexUpdates": [
                    {
                        "Update": {
                            "IndexName": config.index_name,
                            "ProvisionedThroughput": config.provisioned_throughput.to_dynamodb(),
                        }
                    }
                ],
            },
        )

    def delete_index(self, table_name: str, index_name: str) -> None:
        self._call(
            "update_table",
            {
                "TableName": table_name,
                "GlobalSecondaryIndexUpdates": [{"Delete": {"IndexName": index_name}}],
            },
        )

    def is_table_stable(self, table_name: str) -> bool:
        return self._table_status(table_name) == "ACTIVE"

    def is_index_in_status(self, table_name: str, index_name: str, target: str) -> bool:
        match = _find(self.list_indexes(table_name), index_name)
        if target == "DELETED":
            return match is None
        return match is not None and match.index_status == target

    def wait_for_table_stable(self, table_name: str) -> None:
        self._poll(
            lambda: self._table_status(table_name),
            lambda status: status == "ACTIVE",
            resource=f"table {table_name}",
            target="ACTIVE",
        )

    def wait_for_index_status(self, table_name: str, index_name: str, target: str) -> None:
        def observe() -> str | None:
            match = _find(self.list_indexes(table_name), index_name)
            return match.index_status if match is not None else None

        def reached(status: str | None) -> bool:
            if target == "DELETED":
                return status is None
            return status == target

        self._poll(observe, reached, resource=f"index {index_name} on {table_name}", target=target)

    def _poll(
        self,
        observe: Callable[[], str | None],
        reached: Callable[[str | None], bool],
        *,
        resource: str,
        target: str,
    ) -> None:
        start = self._clock()
        delay = self._waiter.initial_delay_seconds
        last_progress_log = -self._waiter.progress_log_interval_seconds

        while True:
            status = observe()
            if reached(status):
                return

            elapsed = self._clock() - start
            if elapsed > self._waiter.timeout_seconds:
                raise WaitTimeoutError(
                    resource=resource, target=target, timeout_seconds=self._waiter.timeout_seconds
                )

            if elapsed - last_progress_log >= self._waiter.progress_log_interval_seconds:
                logger.info(
                    "[GSI Manager] waiting for %s: target=%s current=%s elapsed=%ds",
                    resource,
                    target,
                    status or "MISSING",
                    round(elapsed),
                )
                last_progress_log = elapsed

            self._sleep(min(delay, self._waiter.max_delay_seconds))
            delay = min(delay * 2, self._waiter.max_delay_seconds)

    def _table_status(self, table_name: str) -> str | None:
        status = self._describe(table_name).get("Table", {}).get("TableStatus")
        return str(status) if status is not None else None

    def _describe(self, table_name: str) -> dict[str, Any]:
        return dict(self._call("describe_table", {"TableName": table_name}))

    def _call(self, method: str, req: dict[str, Any]) -> Any:
        fn = getattr(self._client, method)
        try:
            return execute_with_backoff(
                lambda: fn(**req),
                self._error_handling,
                sleep=self._sleep,
                jitter=self._jitter,
            )
        except ClientError as err:
            raise map_client_error(err) from err


def _find(indexes: list[IndexInfo], index_name: str) -> IndexInfo | None:
    return next((gsi for gsi in indexes if gsi.index_name == index_name), None)
