from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

from botocore.exceptions import ClientError

from .model import IN_FLIGHT_STATUSES


def client_error(code: str, message: str = "", operation: str = "UpdateTable") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


def index_description(
    name: str,
    *,
    partition: str,
    sort: str | None = None,
    projection: str = "ALL",
    non_key_attributes: Sequence[str] | None = None,
    status: str = "ACTIVE",
    throughput: tuple[int, int] | None = None,
) -> dict[str, Any]:
    """Build a ``GlobalSecondaryIndexes`` entry as DescribeTable returns it."""
    key_schema = [{"AttributeName": partition, "KeyType": "HASH"}]
    if sort is not None:
        key_schema.append({"AttributeName": sort, "KeyType": "RANGE"})

    proj: dict[str, Any] = {"ProjectionType": projection}
    if non_key_attributes is not None:
        proj["NonKeyAttributes"] = list(non_key_attributes)

    out: dict[str, Any] = {
        "IndexName": name,
        "KeySchema": key_schema,
        "Projection": proj,
        "IndexStatus": status,
    }
    if throughput is not None:
        out["ProvisionedThroughput"] = {
            "ReadCapacityUnits": throughput[0],
            "WriteCapacityUnits": throughput[1],
        }
    return out


def describe_response(
    indexes: Sequence[Mapping[str, Any]] = (),
    *,
    table_name: str = "tbl",
    table_status: str = "ACTIVE",
) -> dict[str, Any]:
    table: dict[str, Any] = {"TableName": table_name, "TableStatus": table_status}
    if indexes:
        table["GlobalSecondaryIndexes"] = [dict(gsi) for gsi in indexes]
    return {"Table": table}


class FakeDynamoDBClient:
    """Scripted client: each call must be the next ``expect``-ed one.

    An ``expected`` request must equal the call's keyword arguments exactly;
    ``None`` accepts any request.
    """

    def __init__(self) -> None:
        self._script: list[tuple[str, dict[str, Any] | None, Mapping[str, Any] | Exception]] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def expect(
        self,
        method: str,
        expected: Mapping[str, Any] | None = None,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        outcome: Mapping[str, Any] | Exception = error if error is not None else dict(response or {})
        self._script.append((method, None if expected is None else dict(expected), outcome))

    def assert_no_pending(self) -> None:
        if self._script:
            pending = ", ".join(method for method, _, _ in self._script)
            raise AssertionError(f"pending expected calls: {pending}")

    def _handle(self, method: str, req: dict[str, Any]) -> Mapping[str, Any]:
        self.calls.append((method, dict(req)))
        if not self._script:
            raise AssertionError(f"unexpected call: {method}")

        want_method, want_req, outcome = self._script.pop(0)
        if want_method != method:
            raise AssertionError(f"expected {want_method}, got {method}")
        if want_req is not None and want_req != req:
            raise AssertionError(f"{method} request mismatch: expected {want_req!r}, got {req!r}")

        if isinstance(outcome, Exception):
            raise outcome
        return dict(outcome)

    def describe_table(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("describe_table", kwargs)

    def update_table(self, **kwargs: Any) -> Mapping[str, Any]:
        return self._handle("update_table", kwargs)


class SimulatedGsiTable:
    """Stateful stand-in for one DynamoDB table's GSI lifecycle.

    Mutations put the index into CREATING/UPDATING/DELETING; it settles
    (ACTIVE, or removed) after ``settle_after`` further DescribeTable calls.
    Like DynamoDB, a mutation issued while another index is still in flight
    fails with ``ResourceInUseException``.
    """

    def __init__(
        self,
        table_name: str = "tbl",
        indexes: Sequence[Mapping[str, Any]] = (),
        *,
        settle_after: int = 2,
        table_status: str = "ACTIVE",
    ) -> None:
        self.table_name = table_name
        self.table_status = table_status
        self.settle_after = settle_after
        self.indexes: dict[str, dict[str, Any]] = {str(gsi["IndexName"]): dict(gsi) for gsi in indexes}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.mutations: list[tuple[str, str]] = []
        self._countdown: dict[str, int] = {}

    def in_flight(self) -> list[str]:
        return [name for name, gsi in self.indexes.items() if gsi.get("IndexStatus") in IN_FLIGHT_STATUSES]

    def describe_table(self, **kwargs: Any) -> Mapping[str, Any]:
        self.calls.append(("describe_table", dict(kwargs)))
        self._check_table(kwargs, "DescribeTable")
        resp = describe_response(
            copy.deepcopy(list(self.indexes.values())),
            table_name=self.table_name,
            table_status=self.table_status,
        )
        self.advance()
        return resp

    def update_table(self, **kwargs: Any) -> Mapping[str, Any]:
        self.calls.append(("update_table", dict(kwargs)))
        self._check_table(kwargs, "UpdateTable")

        updates = kwargs.get("GlobalSecondaryIndexUpdates") or []
        if len(updates) != 1:
            raise client_error("ValidationException", "exactly one GSI update per request")
        if self.in_flight() or self.table_status != "ACTIVE":
            raise client_error("ResourceInUseException", f"table {self.table_name} is being updated")

        (update,) = updates
        if "Create" in update:
            self._create(update["Create"], kwargs.get("AttributeDefinitions") or [])
        elif "Update" in update:
            self._update(update["Update"])
        elif "Delete" in update:
            self._delete(update["Delete"])
        else:
            raise client_error("ValidationException", "unknown GSI update")
        return {"TableDescription": {"TableName": self.table_name, "TableStatus": self.table_status}}

    def advance(self) -> None:
        for name in list(self._countdown):
            self._countdown[name] -= 1
            if self._countdown[name] > 0:
                continue
            del self._countdown[name]
            gsi = self.indexes[name]
            if gsi.get("IndexStatus") == "DELETING":
                del self.indexes[name]
            else:
                gsi["IndexStatus"] = "ACTIVE"

    def _create(self, create: Mapping[str, Any], attribute_definitions: Sequence[Mapping[str, Any]]) -> None:
        name = str(create["IndexName"])
        if name in self.indexes:
            raise client_error("ValidationException", f"index {name} already exists")
        defined = {str(a["AttributeName"]) for a in attribute_definitions}
        for key in create.get("KeySchema") or []:
            if key["AttributeName"] not in defined:
                raise client_error("ValidationException", f"missing attribute definition {key['AttributeName']}")

        gsi: dict[str, Any] = {
            "IndexName": name,
            "KeySchema": copy.deepcopy(list(create["KeySchema"])),
            "Projection": copy.deepcopy(dict(create["Projection"])),
            "IndexStatus": "CREATING",
        }
        if "ProvisionedThroughput" in create:
            gsi["ProvisionedThroughput"] = dict(create["ProvisionedThroughput"])
        self.indexes[name] = gsi
        self._start("CREATE", name)

    def _update(self, update: Mapping[str, Any]) -> None:
        name = str(update["IndexName"])
        gsi = self._require(name)
        gsi["ProvisionedThroughput"] = dict(update["ProvisionedThroughput"])
        gsi["IndexStatus"] = "UPDATING"
        self._start("UPDATE", name)

    def _delete(self, delete: Mapping[str, Any]) -> None:
        name = str(delete["IndexName"])
        self._require(name)["IndexStatus"] = "DELETING"
        self._start("DELETE", name)

    def _start(self, op: str, name: str) -> None:
        self.mutations.append((op, name))
        self._countdown[name] = self.settle_after

    def _require(self, name: str) -> dict[str, Any]:
        gsi = self.indexes.get(name)
        if gsi is None:
            raise client_error("ResourceNotFoundException", f"index {name} not found")
        return gsi

    def _check_table(self, req: Mapping[str, Any], operation: str) -> None:
        if req.get("TableName") != self.table_name:
            raise client_error("ResourceNotFoundException", f"table {req.get('TableName')} not found", operation)
