from __future__ import annotations

from gsi_manager.model import IndexInfo
from gsi_manager.ownership import collect_managed_names, resolve_candidates
from gsi_manager.planner import plan_operations
from gsi_manager.props import parse_manager_props
from gsi_manager.sequencer import ReconcileRequest
from gsi_manager.testkit import index_description


def _observed(*names: str) -> list[IndexInfo]:
    return [IndexInfo.from_dynamodb(index_description(name, partition="PK1")) for name in names]


def _bag(*names: str) -> dict[str, object]:
    return {
        "tableName": "tbl",
        "globalSecondaryIndexes": [{"indexName": name, "partitionKey": {"name": "PK1", "type": "S"}} for name in names],
    }


def test_empty_managed_names_on_create_touches_nothing() -> None:
    resolution = resolve_candidates("CREATE", _observed("GSI1", "GSI2"), set())

    assert resolution.candidates == ()
    assert resolution.adopted is False
    assert resolution.untracked_count == 2


def test_empty_managed_names_on_delete_adopts_everything() -> None:
    observed = _observed("GSI1", "GSI2")
    resolution = resolve_candidates("DELETE", observed, set())

    assert resolution.candidates == tuple(observed)
    assert resolution.adopted is True


def test_empty_managed_names_with_nothing_observed() -> None:
    resolution = resolve_candidates("UPDATE", [], set())
    assert resolution.candidates == ()
    assert resolution.adopted is False


def test_create_only_sees_declared_indexes() -> None:
    resolution = resolve_candidates("CREATE", _observed("GSI1", "MANUAL"), {"GSI1"})

    assert [gsi.index_name for gsi in resolution.candidates] == ["GSI1"]
    assert resolution.adopted is False
    assert resolution.untracked_count == 1


def test_update_adopts_untracked_indexes() -> None:
    resolution = resolve_candidates("UPDATE", _observed("GSI1", "MANUAL"), {"GSI1"})

    assert [gsi.index_name for gsi in resolution.candidates] == ["GSI1", "MANUAL"]
    assert resolution.adopted is True


def test_update_without_untracked_indexes_does_not_adopt() -> None:
    resolution = resolve_candidates("UPDATE", _observed("GSI1"), {"GSI1", "GSI2"})

    assert [gsi.index_name for gsi in resolution.candidates] == ["GSI1"]
    assert resolution.adopted is False


def test_collect_managed_names_unions_prior_declaration() -> None:
    desired = parse_manager_props(_bag("GSI1")).global_secondary_indexes
    prior = parse_manager_props(_bag("GSI1", "GSI2")).global_secondary_indexes

    assert collect_managed_names(desired) == {"GSI1"}
    assert collect_managed_names(desired, prior) == {"GSI1", "GSI2"}


def test_index_removed_from_declaration_is_deleted() -> None:
    request = ReconcileRequest(
        kind="UPDATE",
        props=parse_manager_props(_bag("GSI1")),
        prior_props=parse_manager_props(_bag("GSI1", "GSI2")),
    )
    observed = _observed("GSI1", "GSI2")

    assert request.managed_names == {"GSI1", "GSI2"}
    resolution = resolve_candidates(request.kind, observed, request.managed_names)
    assert [gsi.index_name for gsi in resolution.candidates] == ["GSI1", "GSI2"]

    operations = plan_operations(resolution.candidates, request.desired)
    assert [(op.type, op.index_name) for op in operations] == [("DELETE", "GSI2")]
