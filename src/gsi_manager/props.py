"""Normalisation of the custom-resource property bag.

CloudFormation hands properties over with capitalised keys (``TableName``)
while CDK code declares them in lower camel case (``tableName``); every field
is accepted in either form and converted once, here, into the canonical
dataclasses from :mod:`gsi_manager.model`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .model import AttributeDefinition, IndexConfiguration, ProvisionedThroughput


@dataclass(frozen=True)
class ManagerProps:
    table_name: str
    global_secondary_indexes: tuple[IndexConfiguration, ...] = ()
    error_handling: Mapping[str, Any] | None = None
    parse_issues: tuple[str, ...] = ()

    @property
    def index_names(self) -> list[str]:
        return [gsi.index_name for gsi in self.global_secondary_indexes]


def pick_variant(record: Mapping[str, Any] | None, key: str) -> Any:
    if not record:
        return None
    if key in record:
        return record[key]
    capitalised = key[:1].upper() + key[1:]
    return record.get(capitalised)


def parse_manager_props(props: Mapping[str, Any] | None) -> ManagerProps:
    issues: list[str] = []
    table_name = pick_variant(props, "tableName")
    error_handling = pick_variant(props, "errorHandling")

    return ManagerProps(
        table_name=table_name if isinstance(table_name, str) else "",
        global_secondary_indexes=_parse_index_configs(pick_variant(props, "globalSecondaryIndexes"), issues),
        error_handling=error_handling if isinstance(error_handling, Mapping) else None,
        parse_issues=tuple(issues),
    )


def _parse_index_configs(value: Any, issues: list[str]) -> tuple[IndexConfiguration, ...]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return ()

    out: list[IndexConfiguration] = []
    for entry in value:
        record = entry if isinstance(entry, Mapping) else {}
        index_name = pick_variant(record, "indexName")
        index_name = index_name if isinstance(index_name, str) else ""
        projection_type = pick_variant(record, "projectionType")
        sort_key = pick_variant(record, "sortKey")

        out.append(
            IndexConfiguration(
                index_name=index_name,
                partition_key=_parse_attribute(pick_variant(record, "partitionKey")),
                sort_key=_parse_attribute(sort_key) if sort_key else None,
                projection_type=str(projection_type) if projection_type else None,
                non_key_attributes=_strings(pick_variant(record, "nonKeyAttributes")),
                provisioned_throughput=_parse_throughput(
                    pick_variant(record, "provisionedThroughput"), index_name, issues
                ),
            )
        )
    return tuple(out)


def _parse_attribute(value: Any) -> AttributeDefinition | None:
    if not isinstance(value, Mapping):
        return None
    name = pick_variant(value, "name")
    attr_type = pick_variant(value, "type")
    return AttributeDefinition(
        name=name if isinstance(name, str) else "",
        type=str(attr_type) if attr_type is not None else "S",
    )


def _parse_throughput(value: Any, index_name: str, issues: list[str]) -> ProvisionedThroughput | None:
    if not isinstance(value, Mapping):
        return None

    read = pick_variant(value, "readCapacityUnits")
    write = pick_variant(value, "writeCapacityUnits")
    if read is None or write is None:
        return None

    try:
        return ProvisionedThroughput(read_capacity_units=int(read), write_capacity_units=int(write))
    except (TypeError, ValueError):
        issues.append(f'GSI "{index_name}" has non-numeric provisionedThroughput.')
        return None


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return ()
    return tuple(entry for entry in value if isinstance(entry, str) and entry)
