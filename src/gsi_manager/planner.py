"""Diff observed indexes against the declared set.

DynamoDB can only create, delete, or change the throughput of a GSI, so any
key-schema or projection difference is planned as a DELETE followed by a
CREATE of the same name.
"""

from __future__ import annotations

from collections.abc import Sequence

from .model import IndexConfiguration, IndexInfo, Operation


def key_schema_changed(current: IndexInfo, desired: IndexConfiguration) -> bool:
    desired_partition = desired.partition_key.name if desired.partition_key is not None else None
    if desired_partition is None or current.hash_key != desired_partition:
        return True

    desired_sort = desired.sort_key.name if desired.sort_key is not None else None
    return current.range_key != desired_sort


def projection_changed(current: IndexInfo, desired: IndexConfiguration) -> bool:
    desired_type = desired.effective_projection_type
    if current.projection.projection_type != desired_type:
        return True

    if desired_type == "INCLUDE":
        current_attrs = current.projection.non_key_attributes or ()
        return set(current_attrs) != set(desired.non_key_attributes)

    return False


def throughput_changed(current: IndexInfo, desired: IndexConfiguration) -> bool:
    # on-demand indexes carry no throughput to manage
    wanted = desired.provisioned_throughput
    if wanted is None:
        return False

    have = current.provisioned_throughput
    if have is None:
        return True

    return (
        have.read_capacity_units != wanted.read_capacity_units
        or have.write_capacity_units != wanted.write_capacity_units
    )


def plan_operations(
    current: Sequence[IndexInfo],
    desired: Sequence[IndexConfiguration],
) -> list[Operation]:
    operations: list[Operation] = []
    by_name = {gsi.index_name: gsi for gsi in current}
    desired_names = {config.index_name for config in desired}

    for gsi in current:
        if gsi.index_name not in desired_names:
            operations.append(Operation.delete(gsi))

    for config in desired:
        existing = by_name.get(config.index_name)
        if existing is None:
            operations.append(Operation.create(config))
            continue

        if key_schema_changed(existing, config) or projection_changed(existing, config):
            operations.append(Operation.delete(existing))
            operations.append(Operation.create(config))
            continue

        if throughput_changed(existing, config):
            operations.append(Operation.update(config, existing))

    return operations
