from __future__ import annotations

from typing import Any

import pytest

from gsi_manager.errors import ValidationError
from gsi_manager.model import AttributeDefinition, IndexConfiguration
from gsi_manager.props import parse_manager_props
from gsi_manager.validation import validate_index_configurations, validate_manager_props


def _gsi(name: str, partition: str = "PK1", attr_type: str = "S", **kwargs: Any) -> IndexConfiguration:
    return IndexConfiguration(index_name=name, partition_key=AttributeDefinition(partition, attr_type), **kwargs)


def test_valid_configuration_has_no_issues() -> None:
    configs = [
        _gsi("GSI1"),
        _gsi("by-status.v2", sort_key=AttributeDefinition("SK", "N"), projection_type="KEYS_ONLY"),
    ]
    assert validate_index_configurations(configs) == []


def test_duplicate_index_name_is_reported() -> None:
    issues = validate_index_configurations([_gsi("GSI1"), _gsi("GSI1", partition="PK2")])
    assert issues == ['GSI "GSI1" is defined more than once.']


def test_every_issue_is_collected() -> None:
    configs = [
        IndexConfiguration(index_name="", partition_key=AttributeDefinition("PK1")),
        IndexConfiguration(index_name="GSI2", partition_key=None),
        _gsi("GSI3", attr_type="STRING"),
        _gsi("GSI4", partition=""),
        _gsi("GSI5", sort_key=AttributeDefinition("SK", "X")),
        _gsi("GSI6", projection_type="SOME"),
        _gsi("no spaces allowed"),
    ]

    assert validate_index_configurations(configs) == [
        "GSI at position 0 is missing indexName.",
        'GSI "GSI2" does not define partitionKey.',
        'GSI "GSI3" partitionKey has invalid type "STRING".',
        'GSI "GSI4" partitionKey is missing attribute name.',
        'GSI "GSI5" sortKey has invalid type "X".',
        'GSI "GSI6" has invalid projectionType "SOME".',
        'GSI "no spaces allowed" has an invalid indexName.',
    ]


def test_validate_manager_props_lists_all_problems() -> None:
    props = parse_manager_props(
        {
            "globalSecondaryIndexes": [
                {"indexName": "GSI1", "partitionKey": {"name": "PK1", "type": "S"}},
                {"indexName": "GSI1", "partitionKey": {"name": "PK1", "type": "S"}, "projectionType": "SOME"},
                {
                    "indexName": "GSI2",
                    "partitionKey": {"name": "PK2", "type": "S"},
                    "provisionedThroughput": {"readCapacityUnits": "x", "writeCapacityUnits": "1"},
                },
            ]
        }
    )

    with pytest.raises(ValidationError, match="Invalid GSI configuration detected") as exc:
        validate_manager_props(props)

    assert exc.value.issues == (
        "tableName is required.",
        'GSI "GSI1" is defined more than once.',
        'GSI "GSI1" has invalid projectionType "SOME".',
        'GSI "GSI2" has non-numeric provisionedThroughput.',
    )
    assert "\n- tableName is required." in str(exc.value)


def test_validate_manager_props_rejects_bad_table_name() -> None:
    props = parse_manager_props({"tableName": "x"})
    with pytest.raises(ValidationError, match='tableName "x" is invalid'):
        validate_manager_props(props)


def test_validate_manager_props_accepts_valid_props() -> None:
    props = parse_manager_props(
        {"tableName": "orders", "globalSecondaryIndexes": [{"indexName": "GSI1", "partitionKey": {"name": "PK1"}}]}
    )
    validate_manager_props(props)


def test_validate_manager_props_can_skip_index_checks() -> None:
    duplicate = {"indexName": "GSI1", "partitionKey": {"name": "PK1", "type": "S"}}
    props = parse_manager_props({"tableName": "orders", "globalSecondaryIndexes": [duplicate, duplicate]})

    validate_manager_props(props, check_indexes=False)
    with pytest.raises(ValidationError, match="defined more than once"):
        validate_manager_props(props)

    with pytest.raises(ValidationError, match="tableName is required"):
        validate_manager_props(parse_manager_props({"globalSecondaryIndexes": [duplicate]}), check_indexes=False)
