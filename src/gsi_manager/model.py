from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

type KeyType = Literal["HASH", "RANGE"]
type OperationType = Literal["CREATE", "UPDATE", "DELETE"]
type RequestKind = Literal["CREATE", "UPDATE", "DELETE"]
type TargetStatus = Literal["ACTIVE", "DELETED"]

VALID_ATTRIBUTE_TYPES: tuple[str, ...] = ("S", "N", "B")
VALID_PROJECTION_TYPES: tuple[str, ...] = ("ALL", "KEYS_ONLY", "INCLUDE")
IN_FLIGHT_STATUSES: frozenset[str] = frozenset({"CREATING", "UPDATING", "DELETING"})


@dataclass(frozen=True)
class AttributeDefinition:
    name: str
    type: str = "S"


@dataclass(frozen=True)
class ProvisionedThroughput:
    read_capacity_units: int
    write_capacity_units: int

    def to_dynamodb(self) -> dict[str, int]:
        return {
            "ReadCapacityUnits": self.read_capacity_units,
            "WriteCapacityUnits": self.write_capacity_units,
        }

    @staticmethod
    def from_dynamodb(raw: Mapping[str, Any] | None) -> ProvisionedThroughput | None:
        if not raw:
            return None
        return ProvisionedThroughput(
            read_capacity_units=int(raw.get("ReadCapacityUnits") or 0),
            write_capacity_units=int(raw.get("WriteCapacityUnits") or 0),
        )


@dataclass(frozen=True)
class IndexConfiguration:
    """Desired shape of one global secondary index."""

    index_name: str
    partition_key: AttributeDefinition | None
    sort_key: AttributeDefinition | None = None
    projection_type: str | None = None
    non_key_attributes: tuple[str, ...] = ()
    provisioned_throughput: ProvisionedThroughput | None = None

    @property
    def effective_projection_type(self) -> str:
        return self.projection_type or "ALL"


@dataclass(frozen=True)
class KeySchemaElement:
    attribute_name: str
    key_type: KeyType


@dataclass(frozen=True)
class IndexProjection:
    projection_type: str = "ALL"
    non_key_attributes: tuple[str, ...] | None = None


@dataclass(frozen=True)
class IndexInfo:
    """Observed state of one global secondary index, as described by DynamoDB."""

    index_name: str
    key_schema: tuple[KeySchemaElement, ...] = ()
    projection: IndexProjection = field(default_factory=IndexProjection)
    index_status: str | None = None
    provisioned_throughput: ProvisionedThroughput | None = None

    @property
    def in_flight(self) -> bool:
        return self.index_status in IN_FLIGHT_STATUSES

    @property
    def hash_key(self) -> str | None:
        return next((e.attribute_name for e in self.key_schema if e.key_type == "HASH"), None)

    @property
    def range_key(self) -> str | None:
        return next((e.attribute_name for e in self.key_schema if e.key_type == "RANGE"), None)

    @staticmethod
    def from_dynamodb(raw: Mapping[str, Any]) -> IndexInfo:
        projection = raw.get("Projection") or {}
        non_key = projection.get("NonKeyAttributes")
        return IndexInfo(
            index_name=str(raw.get("IndexName") or ""),
            key_schema=tuple(
                KeySchemaElement(
                    attribute_name=str(entry.get("AttributeName") or ""),
                    key_type="RANGE" if entry.get("KeyType") == "RANGE" else "HASH",
                )
                for entry in raw.get("KeySchema") or ()
            ),
            projection=IndexProjection(
                projection_type=str(projection.get("ProjectionType") or "ALL"),
                non_key_attributes=tuple(non_key) if non_key is not None else None,
            ),
            index_status=raw.get("IndexStatus"),
            provisioned_throughput=ProvisionedThroughput.from_dynamodb(raw.get("ProvisionedThroughput")),
        )


@dataclass(frozen=True)
class Operation:
    type: OperationType
    index_name: str
    desired_configuration: IndexConfiguration | None = None
    current_configuration: IndexInfo | None = None

    @staticmethod
    def create(config: IndexConfiguration) -> Operation:
        return Operation(type="CREATE", index_name=config.index_name, desired_configuration=config)

    @staticmethod
    def update(config: IndexConfiguration, current: IndexInfo) -> Operation:
        return Operation(
            type="UPDATE",
            index_name=config.index_name,
            desired_configuration=config,
            current_configuration=current,
        )

    @staticmethod
    def delete(current: IndexInfo) -> Operation:
        return Operation(type="DELETE", index_name=current.index_name, current_configuration=current)


@dataclass(frozen=True)
class OperationResult:
    success: bool
    operation: OperationType
    index_name: str
    message: str | None = None
