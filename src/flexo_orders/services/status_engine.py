"""Status Engine: legal transitions of the order lifecycle.

State machine:
    Submitted -> Designing -> Design Done -> In Prepress
    -> Ready for Delivery -> Delivering -> Completed
    Submitted / In Review -> Cancelled

Every function here is pure: it takes an OrderRecord and returns a new one
(or raises), never touching storage. services.order_service wraps these
in a compare-and-swap write.

On every transition the engine rewrites the design / prepress / delivery
stage sub-states from the new top-level status (see STAGE_PLAN), so the
nested flags can never disagree with the status for records written here.
Validation always happens before the new record is built; a failed call
leaves nothing half-applied.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional, Tuple

from flexo_orders.models.enums import (
    STATUS_PIPELINE,
    TERMINAL_STATUSES,
    OrderStatus,
    OrderType,
    PrepressSubProcess,
    Priority,
    StageStatus,
    status_rank,
)
from flexo_orders.models.order_record import (
    DeliveryStage,
    OrderRecord,
    PrepressStage,
    Stages,
    StageState,
)
from flexo_orders.models.specification import Specification
from flexo_orders.utils.constants import DEFAULT_CURRENCY
from flexo_orders.utils.datetime_utils import utc_now

from . import delivery_dispatcher, price_estimator
from .exceptions import (
    AlreadyTerminal,
    IllegalTransition,
    SpecificationLocked,
    StageNotActive,
    ValidationError,
)

# Orders may be cancelled, and their specification edited, only before
# design work starts.
CANCELLABLE_STATUSES = frozenset({OrderStatus.SUBMITTED, OrderStatus.IN_REVIEW})

# Statuses in which delivery details may be refreshed
DELIVERY_STATUSES = frozenset({OrderStatus.READY_FOR_DELIVERY, OrderStatus.DELIVERING})

_NS = StageStatus.NOT_STARTED
_IP = StageStatus.IN_PROGRESS
_DONE = StageStatus.COMPLETED

# (design, prepress, delivery) stage status implied by each top-level status
STAGE_PLAN = {
    OrderStatus.SUBMITTED: (_NS, _NS, _NS),
    OrderStatus.IN_REVIEW: (_NS, _NS, _NS),
    OrderStatus.DESIGNING: (_IP, _NS, _NS),
    OrderStatus.DESIGN_DONE: (_DONE, _NS, _NS),
    OrderStatus.IN_PREPRESS: (_DONE, _IP, _NS),
    OrderStatus.READY_FOR_DELIVERY: (_DONE, _DONE, _NS),
    OrderStatus.DELIVERING: (_DONE, _DONE, _IP),
    OrderStatus.COMPLETED: (_DONE, _DONE, _DONE),
}


@dataclass(frozen=True)
class TransitionContext:
    """
    Extra input some transitions need.

    Attributes:
        cancellation_reason: Recorded when moving to Cancelled (may be empty)
        delivery: Delivery selection (mapping or DeliveryInfo); required when
            moving to Ready for Delivery, optional when moving to Delivering
    """

    cancellation_reason: Optional[str] = None
    delivery: Any = None


@dataclass(frozen=True)
class TransitionEvent:
    """A successful transition, for callers that relay notifications."""

    order_id: Optional[int]
    order_number: Optional[str]
    from_status: OrderStatus
    to_status: OrderStatus
    occurred_at: datetime


def _coerce_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError([f"status: '{value}' is not a known order status"]) from None


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    """
    The immediate successor of a status in the pipeline.

    Returns:
        Next status, or None for Completed and Cancelled
    """
    rank = status_rank(status)
    if rank is None or rank + 1 >= len(STATUS_PIPELINE):
        return None
    return STATUS_PIPELINE[rank + 1]


def is_cancellable(order: OrderRecord) -> bool:
    """True iff the order is still inside the cancellable window."""
    return order.status in CANCELLABLE_STATUSES


def is_claimable(order: OrderRecord) -> bool:
    """True iff a claim may be filed, i.e. the order is still active."""
    return order.status not in TERMINAL_STATUSES


def allowed_targets(order: OrderRecord) -> Tuple[OrderStatus, ...]:
    """
    Statuses the order may legally move to next.

    Useful for re-presenting valid choices after an IllegalTransition.
    """
    targets = []
    successor = next_status(order.status)
    if successor is not None:
        targets.append(successor)
    if is_cancellable(order):
        targets.append(OrderStatus.CANCELLED)
    return tuple(targets)


def check_transition(order: OrderRecord, target_status) -> OrderStatus:
    """
    Check that a transition is legal without applying it.

    Returns:
        The target as an OrderStatus

    Raises:
        AlreadyTerminal: If the order is Completed or Cancelled
        IllegalTransition: If target is neither the immediate successor nor
            an allowed cancellation
        ValidationError: If target is not a known status
    """
    if order.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(order.status)

    target = _coerce_status(target_status)
    if target not in allowed_targets(order):
        raise IllegalTransition(order.status, target)
    return target


def _stage_state(current: StageState, status: StageStatus, now: datetime) -> StageState:
    if status is _DONE:
        return StageState(status=status, completion_date=current.completion_date or now)
    return StageState(status=status)


def sync_stages(stages: Stages, status: OrderStatus, now: datetime) -> Stages:
    """
    Rewrite stage sub-states to match a top-level status.

    Completion dates already set are kept; prepress sub-process statuses
    and delivery info are carried over untouched. Cancelled leaves the
    stages as they are.
    """
    plan = STAGE_PLAN.get(status)
    if plan is None:
        return stages

    design_status, prepress_status, delivery_status = plan
    design = _stage_state(stages.design, design_status, now)
    prepress = _stage_state(stages.prepress, prepress_status, now)
    delivery = _stage_state(stages.delivery, delivery_status, now)

    return Stages(
        design=design,
        prepress=PrepressStage(
            status=prepress.status,
            completion_date=prepress.completion_date,
            sub_processes=dict(stages.prepress.sub_processes),
        ),
        delivery=DeliveryStage(
            status=delivery.status,
            completion_date=delivery.completion_date,
            delivery_info=stages.delivery.delivery_info,
        ),
    )


def apply_transition(
    order: OrderRecord,
    target_status,
    context: Optional[TransitionContext] = None,
    now: Optional[datetime] = None,
) -> OrderRecord:
    """
    Move an order to its next status.

    Args:
        order: Current snapshot
        target_status: Requested status (OrderStatus or its value)
        context: Cancellation reason or delivery payload, where needed
        now: Timestamp to stamp; defaults to the current UTC time

    Returns:
        New OrderRecord with status and stages updated; `order` is unchanged

    Raises:
        AlreadyTerminal: If the order is Completed or Cancelled
        IllegalTransition: If the move skips a step, goes backwards, or
            cancels outside the cancellable window
        InvalidDeliveryContext: If the delivery payload is missing (Ready for
            Delivery), malformed, or switches mode
    """
    target = check_transition(order, target_status)
    context = context or TransitionContext()
    now = now or utc_now()

    if target is OrderStatus.CANCELLED:
        return replace(
            order,
            status=OrderStatus.CANCELLED,
            cancellation_reason=context.cancellation_reason or "",
            updated_at=now,
        )

    stages = order.stages
    if target is OrderStatus.READY_FOR_DELIVERY or (
        target is OrderStatus.DELIVERING and context.delivery is not None
    ):
        info = delivery_dispatcher.validate(context.delivery)
        delivery_dispatcher.ensure_same_mode(stages.delivery.delivery_info, info)
        stages = replace(stages, delivery=replace(stages.delivery, delivery_info=info))

    return replace(
        order,
        status=target,
        stages=sync_stages(stages, target, now),
        updated_at=now,
    )


def transition_event(before: OrderRecord, after: OrderRecord) -> TransitionEvent:
    """Describe the transition between two snapshots of the same order."""
    return TransitionEvent(
        order_id=after.id,
        order_number=after.order_number,
        from_status=before.status,
        to_status=after.status,
        occurred_at=after.updated_at or utc_now(),
    )


# =============================================================================
# Non-transition updates
# =============================================================================


def create_order_record(
    specification: Specification,
    title: str = "",
    client_ref: Optional[str] = None,
    order_type: OrderType = OrderType.NEW,
    priority: Priority = Priority.MEDIUM,
    assigned_designer_ref: Optional[str] = None,
    currency: str = DEFAULT_CURRENCY,
    now: Optional[datetime] = None,
) -> OrderRecord:
    """
    Build a new order in Submitted with its estimate cached.

    Raises:
        InvalidSpecification: If the specification cannot be priced
    """
    now = now or utc_now()
    return OrderRecord(
        specification=specification,
        status=OrderStatus.SUBMITTED,
        stages=Stages(),
        title=title,
        client_ref=client_ref,
        order_type=OrderType(order_type),
        priority=Priority(priority),
        assigned_designer_ref=assigned_designer_ref,
        estimated_cost=price_estimator.estimate(specification),
        currency=currency,
        created_at=now,
        updated_at=now,
    )


def update_specification(
    order: OrderRecord, specification: Specification, now: Optional[datetime] = None
) -> OrderRecord:
    """
    Replace the specification and recompute the estimate.

    Raises:
        AlreadyTerminal: If the order is Completed or Cancelled
        SpecificationLocked: Once design work has started
        InvalidSpecification: If the new specification cannot be priced
    """
    if order.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(order.status, "edit specification")
    if order.status not in CANCELLABLE_STATUSES:
        raise SpecificationLocked(order.status)

    return replace(
        order,
        specification=specification,
        estimated_cost=price_estimator.estimate(specification),
        updated_at=now or utc_now(),
    )


def update_prepress_sub_process(
    order: OrderRecord,
    sub_process,
    status,
    now: Optional[datetime] = None,
) -> OrderRecord:
    """
    Set the status of one prepress sub-process.

    Sub-processes may be completed in any order. The prepress stage status
    itself stays with the top-level status; finishing every sub-process does
    not advance the order.

    Args:
        order: Current snapshot
        sub_process: PrepressSubProcess or its value, e.g. "washout"
        status: StageStatus or its value

    Raises:
        ValidationError: Unknown sub-process or status
        AlreadyTerminal: If the order is Completed or Cancelled
        StageNotActive: If the order is not In Prepress
    """
    errors = []
    try:
        sub_process = PrepressSubProcess(sub_process)
    except ValueError:
        errors.append(f"sub_process: '{sub_process}' is not a prepress sub-process")
    try:
        status = StageStatus(status)
    except ValueError:
        errors.append(f"status: '{status}' is not a stage status")
    if errors:
        raise ValidationError(errors)

    operation = "update prepress sub-process"
    if order.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(order.status, operation)
    if order.status is not OrderStatus.IN_PREPRESS:
        raise StageNotActive(order.status, operation)

    sub_processes = dict(order.stages.prepress.sub_processes)
    sub_processes[sub_process] = status
    prepress = replace(order.stages.prepress, sub_processes=sub_processes)

    return replace(
        order,
        stages=replace(order.stages, prepress=prepress),
        updated_at=now or utc_now(),
    )


def update_delivery_details(
    order: OrderRecord, selection: Any, now: Optional[datetime] = None
) -> OrderRecord:
    """
    Refresh delivery details (e.g. add a tracking number) without a transition.

    The delivery mode chosen on entering Ready for Delivery cannot change.

    Raises:
        AlreadyTerminal: If the order is Completed or Cancelled
        StageNotActive: Outside Ready for Delivery / Delivering
        InvalidDeliveryContext: Malformed payload or a mode switch
    """
    operation = "update delivery details"
    if order.status in TERMINAL_STATUSES:
        raise AlreadyTerminal(order.status, operation)
    if order.status not in DELIVERY_STATUSES:
        raise StageNotActive(order.status, operation)

    info = delivery_dispatcher.validate(selection)
    delivery_dispatcher.ensure_same_mode(order.stages.delivery.delivery_info, info)

    delivery = replace(order.stages.delivery, delivery_info=info)
    return replace(
        order,
        stages=replace(order.stages, delivery=delivery),
        updated_at=now or utc_now(),
    )
