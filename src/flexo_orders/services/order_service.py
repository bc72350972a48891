"""Order Service: the entry points an API layer calls.

Each operation reads (or is handed) an OrderRecord snapshot, asks the pure
Status Engine for the new record, and persists it with a compare-and-swap
write plus a history entry, all in one transaction. If another writer
changed the order since the snapshot was read, ConcurrentModification is
raised and nothing is written; the caller re-reads and may retry once.

Session Management Pattern:
- All public functions accept session=None
- If session provided, use it directly (caller owns the transaction)
- If session is None, open one via session_scope()
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flexo_orders.models.enums import OrderStatus, OrderType, Priority, ViewerRole
from flexo_orders.models.order_record import OrderRecord
from flexo_orders.models.specification import Specification
from flexo_orders.utils.config import get_config

from . import order_repository, progress_projector, status_engine
from .database import session_scope
from .exceptions import ConcurrentModification, DatabaseError, OrderNotFound, ServiceError
from .logging_utils import get_service_logger, log_operation
from .progress_projector import ProgressView
from .status_engine import TransitionContext, TransitionEvent

logger = get_service_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Persisted record after a transition, plus the event to relay."""

    order: OrderRecord
    event: TransitionEvent


def _with_session(session: Optional[Session], impl, *args, **kwargs):
    if session is not None:
        return impl(*args, session=session, **kwargs)
    with session_scope() as session:
        return impl(*args, session=session, **kwargs)


def _log_rejection(operation: str, error: ServiceError, **context) -> None:
    log_operation(
        logger,
        operation=operation,
        outcome=type(error).__name__,
        level=logging.WARNING,
        error=str(error),
        **context,
    )


def _conflict(order_id: int, expected_status: OrderStatus, session: Session) -> ServiceError:
    actual = order_repository.current_status(order_id, session)
    if actual is None:
        return OrderNotFound(order_id)
    return ConcurrentModification(order_id, expected_status, actual)


def _stages_conflict(order: OrderRecord, session: Session) -> ServiceError:
    actual = order_repository.current_revision(order.id, session)
    if actual is None:
        return OrderNotFound(order.id)
    return ConcurrentModification(
        order.id,
        order.status,
        order_repository.current_status(order.id, session),
        expected_revision=order.stages_revision,
        actual_revision=actual,
    )


# =============================================================================
# Reads
# =============================================================================


def get_order(order_id: int, session: Session = None) -> OrderRecord:
    """
    Load an order snapshot.

    Raises:
        OrderNotFound: If the order does not exist
    """
    return _with_session(session, order_repository.load, order_id)


def _get_progress_impl(order_id: int, viewer_role, session: Session) -> ProgressView:
    return progress_projector.project(order_repository.load(order_id, session), viewer_role)


def get_progress(
    order_id: int, viewer_role: ViewerRole = ViewerRole.CLIENT, session: Session = None
) -> ProgressView:
    """
    Progress view of a stored order for the given viewer.

    Raises:
        OrderNotFound: If the order does not exist
    """
    return _with_session(session, _get_progress_impl, order_id, viewer_role)


def _get_history_impl(order_id: int, session: Session) -> List[Dict[str, Any]]:
    order_repository.load(order_id, session)
    return order_repository.list_history(order_id, session)


def get_order_history(order_id: int, session: Session = None) -> List[Dict[str, Any]]:
    """
    Audit trail of an order, oldest first.

    Raises:
        OrderNotFound: If the order does not exist
    """
    return _with_session(session, _get_history_impl, order_id)


# =============================================================================
# Creation
# =============================================================================


def _create_order_impl(
    specification: Specification,
    title: str,
    client_ref: Optional[str],
    order_type: OrderType,
    priority: Priority,
    assigned_designer_ref: Optional[str],
    actor_ref: Optional[str],
    session: Session,
) -> OrderRecord:
    record = status_engine.create_order_record(
        specification,
        title=title,
        client_ref=client_ref,
        order_type=order_type,
        priority=priority,
        assigned_designer_ref=assigned_designer_ref,
        currency=get_config().currency,
    )
    try:
        record = order_repository.insert(record, session)
    except SQLAlchemyError as e:
        raise DatabaseError("could not insert order", original_error=e) from e
    order_repository.record_history(
        session,
        record.id,
        action="Order Created",
        to_status=record.status,
        actor_ref=actor_ref or client_ref,
        details="Order submitted by client",
    )
    log_operation(
        logger,
        operation="create_order",
        outcome="success",
        order_id=record.id,
        order_number=record.order_number,
        estimated_cost=str(record.estimated_cost),
    )
    return record


def create_order(
    specification: Specification,
    title: str = "",
    client_ref: Optional[str] = None,
    order_type: OrderType = OrderType.NEW,
    priority: Priority = Priority.MEDIUM,
    assigned_designer_ref: Optional[str] = None,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> OrderRecord:
    """
    Create a new order in Submitted with its estimated cost cached.

    Transaction boundary: Multi-step operation (atomic).
        1. Price the specification
        2. Insert the order row
        3. Write the "Order Created" history entry

    Raises:
        InvalidSpecification: If the specification cannot be priced
    """
    try:
        return _with_session(
            session,
            _create_order_impl,
            specification,
            title,
            client_ref,
            order_type,
            priority,
            assigned_designer_ref,
            actor_ref,
        )
    except ServiceError as e:
        _log_rejection("create_order", e, client_ref=client_ref)
        raise


# =============================================================================
# Transitions
# =============================================================================


def _advance_order_impl(
    order: OrderRecord,
    target_status,
    context: Optional[TransitionContext],
    actor_ref: Optional[str],
    session: Session,
) -> TransitionResult:
    updated = status_engine.apply_transition(order, target_status, context)

    if not order_repository.compare_and_swap(order.id, order.status, updated, session):
        raise _conflict(order.id, order.status, session)

    updated = replace(updated, stages_revision=order.stages_revision + 1)
    event = status_engine.transition_event(order, updated)

    if updated.status is OrderStatus.CANCELLED:
        action = "Order Cancelled"
        details = updated.cancellation_reason or "Cancelled"
    else:
        action = "Status Updated"
        details = f"{order.status.value} -> {updated.status.value}"
    order_repository.record_history(
        session,
        order.id,
        action=action,
        from_status=order.status,
        to_status=updated.status,
        actor_ref=actor_ref,
        details=details,
    )

    log_operation(
        logger,
        operation="advance_order",
        outcome="success",
        order_id=order.id,
        from_status=order.status.value,
        to_status=updated.status.value,
    )
    return TransitionResult(order=updated, event=event)


def advance_order(
    order: OrderRecord,
    target_status,
    context: Optional[TransitionContext] = None,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> TransitionResult:
    """
    Apply a transition to the snapshot the caller read and persist it.

    Transaction boundary: Multi-step operation (atomic).
        1. Validate and build the new record (Status Engine)
        2. Compare-and-swap against the status and stages revision in `order`
        3. Write the history entry

    Args:
        order: Snapshot the caller read earlier
        target_status: Requested status
        context: Cancellation reason or delivery payload, where needed
        actor_ref: Who requested the transition (for history only)
        session: Optional session for transaction sharing

    Returns:
        TransitionResult with the persisted record and a TransitionEvent

    Raises:
        AlreadyTerminal, IllegalTransition, InvalidDeliveryContext: From the engine
        ConcurrentModification: If the stored order changed since `order` was read
        OrderNotFound: If the order no longer exists
    """
    try:
        return _with_session(
            session, _advance_order_impl, order, target_status, context, actor_ref
        )
    except ServiceError as e:
        _log_rejection(
            "advance_order",
            e,
            order_id=order.id,
            from_status=order.status.value,
            to_status=getattr(target_status, "value", target_status),
        )
        raise


def _transition_order_impl(
    order_id: int,
    target_status,
    context: Optional[TransitionContext],
    actor_ref: Optional[str],
    session: Session,
) -> TransitionResult:
    order = order_repository.load(order_id, session)
    return _advance_order_impl(order, target_status, context, actor_ref, session=session)


def transition_order(
    order_id: int,
    target_status,
    context: Optional[TransitionContext] = None,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> TransitionResult:
    """
    Load an order and advance it in the same transaction.

    Same guarantees and errors as advance_order(); the snapshot is simply
    read immediately before the write.
    """
    try:
        return _with_session(
            session, _transition_order_impl, order_id, target_status, context, actor_ref
        )
    except ServiceError as e:
        _log_rejection(
            "transition_order",
            e,
            order_id=order_id,
            to_status=getattr(target_status, "value", target_status),
        )
        raise


def cancel_order(
    order: OrderRecord,
    reason: str = "",
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> TransitionResult:
    """
    Cancel an order that is still in the cancellable window.

    Raises:
        IllegalTransition: Once design work has started
        AlreadyTerminal: If already completed or cancelled
        ConcurrentModification: If the order changed since it was read
    """
    return advance_order(
        order,
        OrderStatus.CANCELLED,
        TransitionContext(cancellation_reason=reason),
        actor_ref=actor_ref,
        session=session,
    )


# =============================================================================
# Stage updates
# =============================================================================


def _write_stages(
    order: OrderRecord, updated: OrderRecord, session: Session
) -> OrderRecord:
    if not order_repository.compare_and_swap_stages(
        order.id, order.stages_revision, updated, session
    ):
        raise _stages_conflict(order, session)
    return replace(updated, stages_revision=order.stages_revision + 1)


def _update_prepress_sub_process_impl(
    order: OrderRecord,
    sub_process,
    status,
    actor_ref: Optional[str],
    session: Session,
) -> OrderRecord:
    updated = status_engine.update_prepress_sub_process(order, sub_process, status)
    updated = _write_stages(order, updated, session)

    sub_process = getattr(sub_process, "value", sub_process)
    status = getattr(status, "value", status)
    order_repository.record_history(
        session,
        order.id,
        action=f"Prepress {sub_process} {status}",
        actor_ref=actor_ref,
        details=f"Prepress sub-process {sub_process} marked as {status}",
    )
    log_operation(
        logger,
        operation="update_prepress_sub_process",
        outcome="success",
        order_id=order.id,
        sub_process=sub_process,
        sub_status=status,
    )
    return updated


def update_prepress_sub_process(
    order: OrderRecord,
    sub_process,
    status,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> OrderRecord:
    """
    Set one prepress sub-process status on the snapshot the caller read.

    The write is guarded by the stages revision in `order`, so two staff
    members updating different sub-processes from the same snapshot cannot
    interleave: the second one gets ConcurrentModification.

    Raises:
        ValidationError: Unknown sub-process or status
        StageNotActive: If the order is not In Prepress
        AlreadyTerminal: If the order is completed or cancelled
        ConcurrentModification: If the stages changed since `order` was read
    """
    try:
        return _with_session(
            session, _update_prepress_sub_process_impl, order, sub_process, status, actor_ref
        )
    except ServiceError as e:
        _log_rejection("update_prepress_sub_process", e, order_id=order.id)
        raise


def _update_delivery_details_impl(
    order: OrderRecord, selection: Any, actor_ref: Optional[str], session: Session
) -> OrderRecord:
    updated = status_engine.update_delivery_details(order, selection)
    updated = _write_stages(order, updated, session)
    mode = updated.delivery_info.mode.value
    order_repository.record_history(
        session,
        order.id,
        action="Delivery Updated",
        actor_ref=actor_ref,
        details=f"Delivery details updated ({mode})",
    )
    log_operation(
        logger,
        operation="update_delivery_details",
        outcome="success",
        order_id=order.id,
        mode=mode,
    )
    return updated


def update_delivery_details(
    order: OrderRecord,
    selection: Any,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> OrderRecord:
    """
    Refresh delivery details (same mode) while ready for or out for delivery.

    Raises:
        InvalidDeliveryContext: Malformed payload or a mode switch
        StageNotActive: Outside Ready for Delivery / Delivering
        ConcurrentModification: If the stages changed since `order` was read
    """
    try:
        return _with_session(session, _update_delivery_details_impl, order, selection, actor_ref)
    except ServiceError as e:
        _log_rejection("update_delivery_details", e, order_id=order.id)
        raise


# =============================================================================
# Specification edits
# =============================================================================


def _update_specification_impl(
    order: OrderRecord,
    specification: Specification,
    actor_ref: Optional[str],
    session: Session,
) -> OrderRecord:
    updated = status_engine.update_specification(order, specification)

    if not order_repository.compare_and_swap(order.id, order.status, updated, session):
        raise _conflict(order.id, order.status, session)
    updated = replace(updated, stages_revision=order.stages_revision + 1)

    order_repository.record_history(
        session,
        order.id,
        action="Specification Updated",
        actor_ref=actor_ref,
        details=f"Estimated cost {order.estimated_cost} -> {updated.estimated_cost}",
    )
    log_operation(
        logger,
        operation="update_specification",
        outcome="success",
        order_id=order.id,
        estimated_cost=str(updated.estimated_cost),
    )
    return updated


def update_specification(
    order: OrderRecord,
    specification: Specification,
    actor_ref: Optional[str] = None,
    session: Session = None,
) -> OrderRecord:
    """
    Replace the specification of an order that has not entered design.

    The estimated cost is recomputed from the new specification.

    Raises:
        SpecificationLocked: Once design work has started
        InvalidSpecification: If the new specification cannot be priced
        ConcurrentModification: If the order changed since `order` was read
    """
    try:
        return _with_session(
            session, _update_specification_impl, order, specification, actor_ref
        )
    except ServiceError as e:
        _log_rejection("update_specification", e, order_id=order.id)
        raise
