from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .config import (
    DEFAULT_ERROR_HANDLING,
    DEFAULT_RETRYABLE_ERROR_CODES,
    DEFAULT_WAITER,
    ErrorHandlingConfig,
    WaiterConfig,
    merge_error_handling_config,
)
from .errors import (
    AwsError,
    GsiManagerError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
    WaitTimeoutError,
)
from .model import (
    AttributeDefinition,
    IndexConfiguration,
    IndexInfo,
    IndexProjection,
    KeySchemaElement,
    Operation,
    OperationResult,
    ProvisionedThroughput,
)
from .ownership import OwnershipResolution, collect_managed_names, resolve_candidates
from .planner import key_schema_changed, plan_operations, projection_changed, throughput_changed
from .props import ManagerProps, parse_manager_props
from .retry import execute_with_backoff
from .validation import validate_index_configurations, validate_manager_props

if TYPE_CHECKING:
    from .handlers import handler, is_complete_handler, on_event_handler
    from .sequencer import ApplyResult, PollResult, Reconciler, ReconcileRequest, StartResult
    from .store import IndexStore

__version__ = "0.1.0"


def __getattr__(name: str) -> Any:
    # boto3-backed modules load on first use
    if name == "IndexStore":
        from .store import IndexStore

        return IndexStore
    if name in {"ApplyResult", "PollResult", "Reconciler", "ReconcileRequest", "StartResult"}:
        from . import sequencer

        return getattr(sequencer, name)
    if name in {"handler", "is_complete_handler", "on_event_handler"}:
        from . import handlers

        return getattr(handlers, name)
    raise AttributeError(name)


__all__ = [
    "ApplyResult",
    "AttributeDefinition",
    "AwsError",
    "DEFAULT_ERROR_HANDLING",
    "DEFAULT_RETRYABLE_ERROR_CODES",
    "DEFAULT_WAITER",
    "ErrorHandlingConfig",
    "GsiManagerError",
    "IndexConfiguration",
    "IndexInfo",
    "IndexProjection",
    "IndexStore",
    "InvalidOperationError",
    "KeySchemaElement",
    "ManagerProps",
    "NotFoundError",
    "Operation",
    "OperationResult",
    "OwnershipResolution",
    "PollResult",
    "ProvisionedThroughput",
    "ReconcileRequest",
    "Reconciler",
    "StartResult",
    "ValidationError",
    "WaitTimeoutError",
    "WaiterConfig",
    "__version__",
    "collect_managed_names",
    "execute_with_backoff",
    "handler",
    "is_complete_handler",
    "key_schema_changed",
    "merge_error_handling_config",
    "on_event_handler",
    "parse_manager_props",
    "plan_operations",
    "projection_changed",
    "resolve_candidates",
    "throughput_changed",
    "validate_index_configurations",
    "validate_manager_props",
]
