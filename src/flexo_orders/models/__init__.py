"""
Models package.

Immutable snapshot types used by the engine (Specification, OrderRecord,
DeliveryInfo variants), the shared enumerations, and the SQLAlchemy ORM
rows behind the persistence adapter.
"""

from .base import Base, BaseModel
from .enums import (
    DeliveryMode,
    DimensionUnit,
    InkColor,
    Material,
    MaterialThickness,
    OrderStatus,
    OrderType,
    PrepressSubProcess,
    PrintingMode,
    Priority,
    Stage,
    StageStatus,
    ViewerRole,
    STATUS_PIPELINE,
    status_rank,
)
from .specification import Specification
from .delivery import (
    Address,
    ClientCollection,
    DeliveryInfo,
    DirectDelivery,
    ShippingCompanyDelivery,
)
from .order_record import (
    DeliveryStage,
    OrderRecord,
    PrepressStage,
    StageState,
    Stages,
)
from .order import Order, OrderHistoryEntry

__all__ = [
    "Base",
    "BaseModel",
    # Enumerations
    "DeliveryMode",
    "DimensionUnit",
    "InkColor",
    "Material",
    "MaterialThickness",
    "OrderStatus",
    "OrderType",
    "PrepressSubProcess",
    "PrintingMode",
    "Priority",
    "Stage",
    "StageStatus",
    "ViewerRole",
    "STATUS_PIPELINE",
    "status_rank",
    # Snapshot types
    "Specification",
    "Address",
    "ClientCollection",
    "DeliveryInfo",
    "DirectDelivery",
    "ShippingCompanyDelivery",
    "DeliveryStage",
    "OrderRecord",
    "PrepressStage",
    "StageState",
    "Stages",
    # ORM rows
    "Order",
    "OrderHistoryEntry",
]
