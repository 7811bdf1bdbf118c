"""Lambda entry points for the GSI manager custom resource.

``on_event_handler`` and ``is_complete_handler`` implement the asynchronous
provider-framework contract: the first starts at most one index mutation and
returns quickly, the second is invoked repeatedly until it reports
``IsComplete``. ``handler`` is the single-shot variant that blocks until every
operation has finished.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .config import merge_error_handling_config
from .errors import InvalidOperationError
from .logging import handler_logging
from .model import RequestKind
from .props import parse_manager_props
from .runtime import get_lambda_dynamodb_client
from .sequencer import Reconciler, ReconcileRequest
from .store import IndexStore

logger = logging.getLogger(__name__)
logging.getLogger("gsi_manager").setLevel(logging.INFO)

_REQUEST_KINDS: dict[str, RequestKind] = {"Create": "CREATE", "Update": "UPDATE", "Delete": "DELETE"}


def request_from_event(event: Mapping[str, Any]) -> ReconcileRequest:
    request_type = event.get("RequestType")
    kind = _REQUEST_KINDS.get(str(request_type))
    if kind is None:
        raise InvalidOperationError(f"Unsupported request type: {request_type}")

    props = parse_manager_props(event.get("ResourceProperties") or {})
    old = event.get("OldResourceProperties")
    prior = parse_manager_props(old) if kind == "UPDATE" and old else None

    return ReconcileRequest(
        kind=kind,
        props=props,
        prior_props=prior,
        physical_id=event.get("PhysicalResourceId") or None,
    )


def build_reconciler(request: ReconcileRequest, *, client: Any | None = None) -> Reconciler:
    store = IndexStore(
        client=client or get_lambda_dynamodb_client(),
        error_handling=merge_error_handling_config(request.props.error_handling),
    )
    return Reconciler(store)


@handler_logging
def on_event_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    _ = context
    request = request_from_event(event)
    logger.info(
        "[GSI Manager][onEvent] %s for table %s",
        request.kind,
        request.table_name,
        extra={"table": request.table_name, "request_type": request.kind},
    )

    result = build_reconciler(request).start(request)
    response: dict[str, Any] = {"IsComplete": result.complete, "PhysicalResourceId": result.physical_id}
    if result.complete and result.data is not None:
        response["Data"] = result.data
    return response


@handler_logging
def is_complete_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    _ = context
    request = request_from_event(event)
    logger.info(
        "[GSI Manager][isComplete] checking operations for table %s",
        request.table_name,
        extra={"table": request.table_name, "request_type": request.kind},
    )

    result = build_reconciler(request).poll(request)
    if not result.complete:
        return {"IsComplete": False}
    return {"IsComplete": True, "Data": result.data or {}}


@handler_logging
def handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    _ = context
    request = request_from_event(event)
    result = build_reconciler(request).apply(request)
    return {"PhysicalResourceId": result.physical_id, "Data": result.data}
