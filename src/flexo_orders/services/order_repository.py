"""Order persistence: OrderRecord <-> `orders` table.

This module implements the persistence contract the engine relies on:

- load(order_id, session) -> OrderRecord
- insert(record, session) -> OrderRecord (with id and order number)
- compare_and_swap(order_id, expected_status, new_record, session) -> bool
- compare_and_swap_stages(order_id, expected_revision, new_record, session) -> bool
- current_status(order_id, session) / current_revision(order_id, session)
- record_history(...) / list_history(...)

Compare-and-swap writes are a single UPDATE guarded by the values the
caller read; a False return means another writer got there first. Every
successful write bumps `stages_revision`, so a guard on the revision
covers the whole Stages object rather than individual sub-process fields.

All functions take the caller's session; the transaction boundary belongs
to services.order_service.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from flexo_orders.models.enums import OrderStatus, PrepressSubProcess, StageStatus
from flexo_orders.models.order import Order, OrderHistoryEntry
from flexo_orders.models.order_record import (
    DeliveryStage,
    OrderRecord,
    PrepressStage,
    Stages,
    StageState,
    initial_sub_processes,
)
from flexo_orders.models.specification import Specification
from flexo_orders.utils.constants import ORDER_NUMBER_PREFIX, ORDER_NUMBER_SEQUENCE_WIDTH
from flexo_orders.utils.datetime_utils import ensure_aware, from_iso, to_iso, utc_now

from . import delivery_dispatcher
from .exceptions import OrderNotFound
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

# Stage status spellings found in records from the previous system
_LEGACY_STAGE_STATUS = {
    "Pending": StageStatus.NOT_STARTED,
    "In Progress": StageStatus.IN_PROGRESS,
    "Completed": StageStatus.COMPLETED,
    "Rejected": StageStatus.NOT_STARTED,
    "N/A": StageStatus.NOT_STARTED,
}

# Keys the previous system used for design progress, most specific first
_LEGACY_DESIGN_KEYS = ("production", "review")

_LEGACY_SUB_PROCESS_NAMES = {"laserImaging": PrepressSubProcess.LASER_IMAGING}


# =============================================================================
# Serialization
# =============================================================================


def _stage_status_from(value: Optional[str]) -> StageStatus:
    if value is None:
        return StageStatus.NOT_STARTED
    if value in _LEGACY_STAGE_STATUS:
        return _LEGACY_STAGE_STATUS[value]
    return StageStatus(value)


def stages_to_dict(stages: Stages) -> Dict[str, Any]:
    """Serialize Stages for the JSON `stages` column."""
    info = stages.delivery.delivery_info
    return {
        "design": {
            "status": stages.design.status.value,
            "completion_date": to_iso(stages.design.completion_date),
        },
        "prepress": {
            "status": stages.prepress.status.value,
            "completion_date": to_iso(stages.prepress.completion_date),
            "sub_processes": {
                sub_process.value: status.value
                for sub_process, status in stages.prepress.sub_processes.items()
            },
        },
        "delivery": {
            "status": stages.delivery.status.value,
            "completion_date": to_iso(stages.delivery.completion_date),
            "delivery_info": None if info is None else delivery_dispatcher.to_dict(info),
        },
    }


def _sub_process_from(name: str) -> Optional[PrepressSubProcess]:
    if name in _LEGACY_SUB_PROCESS_NAMES:
        return _LEGACY_SUB_PROCESS_NAMES[name]
    try:
        return PrepressSubProcess(name)
    except ValueError:
        return None


def _stage_state_from(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "status": _stage_status_from(entry.get("status")),
        "completion_date": from_iso(
            entry.get("completion_date") or entry.get("completionDate")
        ),
    }


def stages_from_dict(data: Optional[Dict[str, Any]]) -> Stages:
    """
    Rebuild Stages from the JSON column.

    Missing stages default to not started, so partially-populated historical
    rows still load. Rows from the previous system keep design progress
    under "production" or "review" and camelCase keys; both are read.
    Unknown sub-process names are dropped with a warning.
    """
    data = data or {}
    design = data.get("design")
    if design is None:
        design = next(
            (data[key] for key in _LEGACY_DESIGN_KEYS if data.get(key)), None
        )
    design = design or {}
    prepress = data.get("prepress") or {}
    delivery = data.get("delivery") or {}

    sub_processes = initial_sub_processes()
    entries = prepress.get("sub_processes") or prepress.get("subProcesses") or {}
    for name, entry in entries.items():
        sub_process = _sub_process_from(name)
        if sub_process is None:
            log_operation(
                logger,
                operation="load_stages",
                outcome="unknown_sub_process",
                level=logging.WARNING,
                sub_process=name,
            )
            continue
        # Older rows stored {"status": ...} objects per sub-process
        status = entry.get("status") if isinstance(entry, dict) else entry
        sub_processes[sub_process] = _stage_status_from(status)

    return Stages(
        design=StageState(**_stage_state_from(design)),
        prepress=PrepressStage(sub_processes=sub_processes, **_stage_state_from(prepress)),
        delivery=DeliveryStage(
            delivery_info=delivery_dispatcher.from_dict(delivery.get("delivery_info")),
            **_stage_state_from(delivery),
        ),
    )


def to_record(row: Order) -> OrderRecord:
    """Convert an Order row into an OrderRecord snapshot."""
    return OrderRecord(
        id=row.id,
        order_number=row.order_number,
        title=row.title,
        client_ref=row.client_ref,
        specification=Specification.from_dict(row.specification),
        order_type=row.order_type,
        priority=row.priority,
        status=row.status,
        stages=stages_from_dict(row.stages),
        assigned_designer_ref=row.assigned_designer_ref,
        cancellation_reason=row.cancellation_reason,
        estimated_cost=row.estimated_cost,
        currency=row.currency,
        stages_revision=row.stages_revision,
        created_at=ensure_aware(row.created_at) if row.created_at else None,
        updated_at=ensure_aware(row.updated_at) if row.updated_at else None,
    )


# =============================================================================
# Reads
# =============================================================================


def _get_row(order_id: int, session: Session) -> Order:
    row = session.query(Order).filter(Order.id == order_id).populate_existing().first()
    if row is None:
        raise OrderNotFound(order_id)
    return row


def load(order_id: int, session: Session) -> OrderRecord:
    """
    Load the current snapshot of an order.

    Raises:
        OrderNotFound: If no such order exists
    """
    return to_record(_get_row(order_id, session))


def current_status(order_id: int, session: Session) -> Optional[OrderStatus]:
    """Stored status of an order, or None if it does not exist."""
    return session.query(Order.status).filter(Order.id == order_id).scalar()


def current_revision(order_id: int, session: Session) -> Optional[int]:
    """Stored stages revision of an order, or None if it does not exist."""
    return session.query(Order.stages_revision).filter(Order.id == order_id).scalar()


def next_order_number(session: Session, now: Optional[datetime] = None) -> str:
    """
    Next order number in the ORD-YYMM-NNNN format.

    The sequence is the running order count, not a per-month counter.
    """
    now = now or utc_now()
    count = session.query(func.count(Order.id)).scalar() or 0
    sequence = str(count + 1).zfill(ORDER_NUMBER_SEQUENCE_WIDTH)
    return f"{ORDER_NUMBER_PREFIX}-{now:%y%m}-{sequence}"


# =============================================================================
# Writes
# =============================================================================


def insert(record: OrderRecord, session: Session) -> OrderRecord:
    """
    Insert a new order.

    Returns:
        The record with id and order_number filled in
    """
    now = record.created_at or utc_now()
    row = Order(
        order_number=record.order_number or next_order_number(session, now),
        title=record.title,
        client_ref=record.client_ref,
        order_type=record.order_type,
        priority=record.priority,
        status=record.status,
        specification=record.specification.to_dict(),
        stages=stages_to_dict(record.stages),
        stages_revision=record.stages_revision,
        assigned_designer_ref=record.assigned_designer_ref,
        cancellation_reason=record.cancellation_reason,
        estimated_cost=record.estimated_cost,
        currency=record.currency,
        created_at=now,
        updated_at=record.updated_at or now,
    )
    session.add(row)
    session.flush()
    return replace(
        record,
        id=row.id,
        order_number=row.order_number,
        created_at=now,
        updated_at=record.updated_at or now,
    )


def _mutable_values(record: OrderRecord) -> Dict[str, Any]:
    return {
        Order.status: record.status,
        Order.specification: record.specification.to_dict(),
        Order.stages: stages_to_dict(record.stages),
        Order.stages_revision: record.stages_revision + 1,
        Order.assigned_designer_ref: record.assigned_designer_ref,
        Order.cancellation_reason: record.cancellation_reason,
        Order.estimated_cost: record.estimated_cost,
        Order.priority: record.priority,
        Order.updated_at: record.updated_at or utc_now(),
    }


def compare_and_swap(
    order_id: int,
    expected_status: OrderStatus,
    new_record: OrderRecord,
    session: Session,
) -> bool:
    """
    Write new_record only if the stored order is still as the caller read it.

    The guard is the status the caller read plus the stages revision the
    new record was derived from (new_record.stages_revision).

    Returns:
        True if the row was written, False on conflict
    """
    updated = (
        session.query(Order)
        .filter(
            Order.id == order_id,
            Order.status == expected_status,
            Order.stages_revision == new_record.stages_revision,
        )
        .update(_mutable_values(new_record), synchronize_session=False)
    )
    return updated == 1


def compare_and_swap_stages(
    order_id: int,
    expected_revision: int,
    new_record: OrderRecord,
    session: Session,
) -> bool:
    """
    Write only the Stages object, guarded by its revision.

    Returns:
        True if the row was written, False on conflict
    """
    updated = (
        session.query(Order)
        .filter(Order.id == order_id, Order.stages_revision == expected_revision)
        .update(
            {
                Order.stages: stages_to_dict(new_record.stages),
                Order.stages_revision: expected_revision + 1,
                Order.updated_at: new_record.updated_at or utc_now(),
            },
            synchronize_session=False,
        )
    )
    return updated == 1


def record_history(
    session: Session,
    order_id: int,
    action: str,
    from_status: Optional[OrderStatus] = None,
    to_status: Optional[OrderStatus] = None,
    actor_ref: Optional[str] = None,
    details: Optional[str] = None,
) -> OrderHistoryEntry:
    """Append an entry to an order's audit trail."""
    entry = OrderHistoryEntry(
        order_id=order_id,
        action=action,
        from_status=from_status,
        to_status=to_status,
        actor_ref=actor_ref,
        details=details,
    )
    session.add(entry)
    session.flush()
    return entry


def list_history(order_id: int, session: Session) -> List[Dict[str, Any]]:
    """Audit trail of an order, oldest first, as dictionaries."""
    entries = (
        session.query(OrderHistoryEntry)
        .filter(OrderHistoryEntry.order_id == order_id)
        .order_by(OrderHistoryEntry.id)
        .all()
    )
    return [entry.to_dict() for entry in entries]
