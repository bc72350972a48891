"""Progress Projector: derived progress views of an order.

project() is the one place that decides whether a stage counts as
complete; dashboards, progress bars and stage lists all read its output
instead of inspecting statuses themselves.

Completion rules (four stages, Submission always complete):
    Design    complete if status is past Designing, or design stage completed
    Prepress  complete if status is Ready for Delivery or later, or prepress
              stage completed
    Delivery  complete if status is Completed, or delivery stage completed

The top-level status is authoritative. The nested stage flags are also
accepted so that records written before the engine kept both in sync still
display correctly; the engine itself always writes them together.

percent = 100 * completed / 4, plus half a stage (12.5) when the first
incomplete stage is in progress. A stage is in progress when the status is
working on it (Designing, In Prepress, Delivering) or its stage flag says so.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from flexo_orders.models.enums import (
    OrderStatus,
    PrepressSubProcess,
    Stage,
    StageStatus,
    ViewerRole,
    status_rank,
)
from flexo_orders.models.order_record import OrderRecord
from flexo_orders.utils.constants import (
    STAGE_LABEL_COMPLETED,
    STAGE_LABEL_IN_PROGRESS,
    STAGE_LABEL_PENDING,
    TOTAL_STAGES,
)

_HUNDRED = Decimal(100)

# Simplified labels shown to clients; staff see the raw status
_CLIENT_STATUS_LABELS = {
    OrderStatus.SUBMITTED: "SUBMITTED",
    OrderStatus.IN_REVIEW: "IN REVIEW",
    OrderStatus.DESIGNING: "DESIGNING",
    OrderStatus.DESIGN_DONE: "DESIGN COMPLETED",
    OrderStatus.IN_PREPRESS: "IN PREPRESS",
    OrderStatus.READY_FOR_DELIVERY: "OUT FOR DELIVERY",
    OrderStatus.DELIVERING: "DELIVERING",
    OrderStatus.COMPLETED: "COMPLETED",
    OrderStatus.CANCELLED: "CANCELLED",
}

# Status that means work on a stage is under way
_ACTIVE_STAGE = {
    OrderStatus.DESIGNING: Stage.DESIGN,
    OrderStatus.IN_PREPRESS: Stage.PREPRESS,
    OrderStatus.DELIVERING: Stage.DELIVERY,
}


@dataclass(frozen=True)
class SubProcessLabel:
    sub_process: PrepressSubProcess
    label: str


@dataclass(frozen=True)
class StageLabel:
    """
    Display state of one stage.

    Attributes:
        stage: Which stage
        label: Completed / In Progress / Pending
        completed: Completion boolean used for the counts
        sub_processes: Prepress sub-process breakdown; staff viewers only
    """

    stage: Stage
    label: str
    completed: bool
    sub_processes: Tuple[SubProcessLabel, ...] = ()


@dataclass(frozen=True)
class ProgressView:
    completed_count: int
    total_stages: int
    percent: Decimal
    current_step_index: int
    stage_labels: Tuple[StageLabel, ...]
    status_label: str


def _label_for(status: StageStatus) -> str:
    if status == StageStatus.COMPLETED:
        return STAGE_LABEL_COMPLETED
    if status == StageStatus.IN_PROGRESS:
        return STAGE_LABEL_IN_PROGRESS
    return STAGE_LABEL_PENDING


def _reached(order: OrderRecord, status: OrderStatus) -> bool:
    rank = status_rank(order.status)
    return rank is not None and rank >= status_rank(status)


def stage_completion(order: OrderRecord) -> Tuple[bool, bool, bool, bool]:
    """Completion booleans for Submission, Design, Prepress, Delivery."""
    stages = order.stages
    design = _reached(order, OrderStatus.DESIGN_DONE) or (
        stages.design.status == StageStatus.COMPLETED
    )
    prepress = _reached(order, OrderStatus.READY_FOR_DELIVERY) or (
        stages.prepress.status == StageStatus.COMPLETED
    )
    delivery = order.status is OrderStatus.COMPLETED or (
        stages.delivery.status == StageStatus.COMPLETED
    )
    return True, design, prepress, delivery


def _stage_flag(order: OrderRecord, stage: Stage) -> Optional[StageStatus]:
    if stage is Stage.DESIGN:
        return order.stages.design.status
    if stage is Stage.PREPRESS:
        return order.stages.prepress.status
    if stage is Stage.DELIVERY:
        return order.stages.delivery.status
    return None


def stage_in_progress(order: OrderRecord, stage: Stage) -> bool:
    """True if the status is working on the stage, or its flag says in progress."""
    if _ACTIVE_STAGE.get(order.status) is stage:
        return True
    return _stage_flag(order, stage) == StageStatus.IN_PROGRESS


def status_label(status: OrderStatus, viewer_role: ViewerRole = ViewerRole.CLIENT) -> str:
    """
    Human-readable status for a viewer.

    Example:
        >>> status_label(OrderStatus.READY_FOR_DELIVERY, ViewerRole.CLIENT)
        'OUT FOR DELIVERY'
        >>> status_label(OrderStatus.READY_FOR_DELIVERY, ViewerRole.MANAGER)
        'READY FOR DELIVERY'
    """
    if ViewerRole(viewer_role).is_staff:
        return status.value.upper()
    return _CLIENT_STATUS_LABELS[status]


def project(order: OrderRecord, viewer_role: ViewerRole = ViewerRole.CLIENT) -> ProgressView:
    """
    Compute the progress view of an order.

    Pure: the same snapshot always yields an equal ProgressView. The viewer
    role only controls the status label and whether prepress sub-process
    detail is included; it never changes completion.

    Args:
        order: Snapshot to project
        viewer_role: Who is looking

    Returns:
        ProgressView
    """
    viewer_role = ViewerRole(viewer_role)
    stages = tuple(Stage)
    completion = stage_completion(order)
    completed_count = sum(completion)

    first_incomplete = next(
        (index for index, done in enumerate(completion) if not done), None
    )

    percent = _HUNDRED * completed_count / TOTAL_STAGES
    in_progress = first_incomplete is not None and stage_in_progress(
        order, stages[first_incomplete]
    )
    if in_progress:
        percent += _HUNDRED / TOTAL_STAGES / 2

    labels = []
    for index, stage in enumerate(stages):
        if completion[index]:
            label = STAGE_LABEL_COMPLETED
        elif index == first_incomplete and in_progress:
            label = STAGE_LABEL_IN_PROGRESS
        else:
            label = STAGE_LABEL_PENDING

        detail = ()
        if stage is Stage.PREPRESS and viewer_role.is_staff:
            detail = tuple(
                SubProcessLabel(
                    sub_process=sub_process,
                    label=_label_for(
                        order.stages.prepress.sub_processes.get(
                            sub_process, StageStatus.NOT_STARTED
                        )
                    ),
                )
                for sub_process in PrepressSubProcess
            )
        labels.append(
            StageLabel(stage=stage, label=label, completed=completion[index], sub_processes=detail)
        )

    return ProgressView(
        completed_count=completed_count,
        total_stages=TOTAL_STAGES,
        percent=percent,
        current_step_index=TOTAL_STAGES if first_incomplete is None else first_incomplete,
        stage_labels=tuple(labels),
        status_label=status_label(order.status, viewer_role),
    )
