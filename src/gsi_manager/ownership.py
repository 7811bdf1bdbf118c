from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .model import IndexConfiguration, IndexInfo


@dataclass(frozen=True)
class OwnershipResolution:
    candidates: tuple[IndexInfo, ...]
    adopted: bool
    untracked_count: int


def collect_managed_names(
    desired: Iterable[IndexConfiguration],
    prior: Iterable[IndexConfiguration] | None = None,
) -> set[str]:
    names = {gsi.index_name for gsi in desired}
    if prior is not None:
        names.update(gsi.index_name for gsi in prior)
    return names


def resolve_candidates(
    request_kind: str,
    observed: Sequence[IndexInfo],
    managed_names: set[str],
) -> OwnershipResolution:
    """Pick the observed indexes a reconciliation may act on.

    CREATE only ever sees indexes it declares. UPDATE and DELETE adopt every
    observed index as soon as one of them is untracked, so indexes created by
    hand or dropped from an earlier declaration get cleaned up.
    """
    if not managed_names:
        if request_kind == "CREATE":
            return OwnershipResolution(candidates=(), adopted=False, untracked_count=len(observed))
        return OwnershipResolution(
            candidates=tuple(observed),
            adopted=len(observed) > 0,
            untracked_count=len(observed),
        )

    tracked = tuple(gsi for gsi in observed if gsi.index_name in managed_names)
    untracked_count = len(observed) - len(tracked)
    adopt = request_kind in ("UPDATE", "DELETE") and untracked_count > 0

    return OwnershipResolution(
        candidates=tuple(observed) if adopt else tracked,
        adopted=adopt,
        untracked_count=untracked_count,
    )
