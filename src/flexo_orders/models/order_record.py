"""
Order record snapshot types.

An OrderRecord is the immutable, in-memory view of one order that the
Status Engine and Progress Projector work on. Engine functions take a
record and return a new one; persistence (services.order_repository)
converts records to and from the `orders` table.

This module contains:
- StageState: status and completion date of a stage
- PrepressStage: StageState plus per-sub-process status
- DeliveryStage: StageState plus the active DeliveryInfo variant
- Stages: design / prepress / delivery sub-state
- OrderRecord: the aggregate
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from flexo_orders.utils.constants import DEFAULT_CURRENCY

from .delivery import DeliveryInfo
from .enums import OrderStatus, OrderType, PrepressSubProcess, Priority, StageStatus
from .specification import Specification


def initial_sub_processes() -> Dict[PrepressSubProcess, StageStatus]:
    """Every prepress sub-process, not started."""
    return {sub_process: StageStatus.NOT_STARTED for sub_process in PrepressSubProcess}


@dataclass(frozen=True)
class StageState:
    status: StageStatus = StageStatus.NOT_STARTED
    completion_date: Optional[datetime] = None


@dataclass(frozen=True)
class PrepressStage:
    """
    Prepress stage sub-state.

    Attributes:
        status: Stage status, written by the Status Engine
        completion_date: When the stage became completed
        sub_processes: Status of every PrepressSubProcess. Treat as read-only;
            engine functions always build a fresh dict.
    """

    status: StageStatus = StageStatus.NOT_STARTED
    completion_date: Optional[datetime] = None
    sub_processes: Dict[PrepressSubProcess, StageStatus] = field(
        default_factory=initial_sub_processes
    )

    @property
    def all_sub_processes_completed(self) -> bool:
        return all(
            self.sub_processes.get(sub_process) == StageStatus.COMPLETED
            for sub_process in PrepressSubProcess
        )


@dataclass(frozen=True)
class DeliveryStage:
    status: StageStatus = StageStatus.NOT_STARTED
    completion_date: Optional[datetime] = None
    delivery_info: Optional[DeliveryInfo] = None


@dataclass(frozen=True)
class Stages:
    design: StageState = field(default_factory=StageState)
    prepress: PrepressStage = field(default_factory=PrepressStage)
    delivery: DeliveryStage = field(default_factory=DeliveryStage)


@dataclass(frozen=True)
class OrderRecord:
    """
    Immutable snapshot of an order.

    Attributes:
        specification: What is being printed
        status: Authoritative top-level status
        stages: Nested stage sub-state, kept in sync with status by the engine
        id: Database identity (None until inserted)
        order_number: Human-facing number, e.g. ORD-2610-0001
        title: Short order title
        client_ref: Reference to the submitting client
        order_type: New / existing / existing with changes
        priority: Scheduling priority
        assigned_designer_ref: Optional designer assignment
        cancellation_reason: Set once, when the order is cancelled
        estimated_cost: Cached Price Estimator output for specification
        currency: Currency of estimated_cost
        stages_revision: Version of `stages`, bumped on every persisted write;
            used as the compare-and-swap guard
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    specification: Specification
    status: OrderStatus = OrderStatus.SUBMITTED
    stages: Stages = field(default_factory=Stages)
    id: Optional[int] = None
    order_number: Optional[str] = None
    title: str = ""
    client_ref: Optional[str] = None
    order_type: OrderType = OrderType.NEW
    priority: Priority = Priority.MEDIUM
    assigned_designer_ref: Optional[str] = None
    cancellation_reason: Optional[str] = None
    estimated_cost: Decimal = Decimal("0.00")
    currency: str = DEFAULT_CURRENCY
    stages_revision: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def delivery_info(self) -> Optional[DeliveryInfo]:
        return self.stages.delivery.delivery_info

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
