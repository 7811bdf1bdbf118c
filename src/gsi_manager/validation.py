from __future__ import annotations

import re
from collections.abc import Sequence

from .errors import ValidationError
from .model import VALID_ATTRIBUTE_TYPES, VALID_PROJECTION_TYPES, AttributeDefinition, IndexConfiguration
from .props import ManagerProps

MinNameLength = 3
MaxNameLength = 255

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")


def validate_index_configurations(configurations: Sequence[IndexConfiguration]) -> list[str]:
    """Return every problem found in ``configurations`` (empty when valid)."""
    issues: list[str] = []
    seen: set[str] = set()

    for position, config in enumerate(configurations):
        name = config.index_name
        if not name.strip():
            issues.append(f"GSI at position {position} is missing indexName.")
        elif name in seen:
            issues.append(f'GSI "{name}" is defined more than once.')
        else:
            seen.add(name)
            if not _valid_name(name):
                issues.append(f'GSI "{name}" has an invalid indexName.')

        if config.partition_key is None:
            issues.append(f'GSI "{name}" does not define partitionKey.')
        else:
            issues.extend(_attribute_issues(name, config.partition_key, "partitionKey"))
        if config.sort_key is not None:
            issues.extend(_attribute_issues(name, config.sort_key, "sortKey"))

        if config.projection_type is not None and config.projection_type not in VALID_PROJECTION_TYPES:
            issues.append(f'GSI "{name}" has invalid projectionType "{config.projection_type}".')

    return issues


def validate_manager_props(props: ManagerProps, *, check_indexes: bool = True) -> None:
    """Raise :class:`ValidationError` listing every problem in ``props``.

    With ``check_indexes=False`` only the table name is checked.
    """
    issues: list[str] = []
    if not props.table_name:
        issues.append("tableName is required.")
    elif not _valid_name(props.table_name):
        issues.append(f'tableName "{props.table_name}" is invalid.')
    if check_indexes:
        issues.extend(validate_index_configurations(props.global_secondary_indexes))
        issues.extend(props.parse_issues)

    if issues:
        raise ValidationError.from_issues(issues)


def _attribute_issues(index_name: str, attribute: AttributeDefinition, role: str) -> list[str]:
    issues: list[str] = []
    if not attribute.name.strip():
        issues.append(f'GSI "{index_name}" {role} is missing attribute name.')
    if attribute.type not in VALID_ATTRIBUTE_TYPES:
        issues.append(f'GSI "{index_name}" {role} has invalid type "{attribute.type}".')
    return issues


def _valid_name(name: str) -> bool:
    return MinNameLength <= len(name) <= MaxNameLength and _NAME_PATTERN.match(name) is not None
