"""
Order persistence models.

This module contains:
- Order: one row per order; specification and stages are stored as JSON
- OrderHistoryEntry: audit trail of transitions and stage updates

These rows are only touched through services.order_repository, which
converts them to and from OrderRecord snapshots.
"""

from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from flexo_orders.utils.constants import (
    DEFAULT_CURRENCY,
    MAX_REFERENCE_LENGTH,
    MAX_TITLE_LENGTH,
    TABLE_ORDER,
    TABLE_ORDER_HISTORY,
)

from .base import BaseModel
from .enums import OrderStatus, OrderType, Priority


class Order(BaseModel):
    """
    Order row.

    Attributes:
        order_number: Unique human-facing number (ORD-YYMM-NNNN)
        title: Short title
        client_ref: Reference to the client in the surrounding application
        order_type: New / existing / existing with changes
        priority: Scheduling priority
        status: Authoritative top-level status
        specification: Specification.to_dict() output
        stages: Serialized Stages (see order_repository)
        stages_revision: Bumped on every write; compare-and-swap guard
        assigned_designer_ref: Optional designer assignment
        cancellation_reason: Set when cancelled
        estimated_cost: Cached estimate for the current specification
        currency: Currency code of estimated_cost
    """

    __tablename__ = TABLE_ORDER

    order_number = Column(String(32), nullable=False, unique=True)
    title = Column(String(MAX_TITLE_LENGTH), nullable=False, default="")
    client_ref = Column(String(MAX_REFERENCE_LENGTH), nullable=True, index=True)
    order_type = Column(SQLEnum(OrderType), nullable=False, default=OrderType.NEW)
    priority = Column(SQLEnum(Priority), nullable=False, default=Priority.MEDIUM)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.SUBMITTED)

    specification = Column(JSON, nullable=False)
    stages = Column(JSON, nullable=False)
    stages_revision = Column(Integer, nullable=False, default=0)

    assigned_designer_ref = Column(String(MAX_REFERENCE_LENGTH), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    estimated_cost = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)

    history = relationship(
        "OrderHistoryEntry",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderHistoryEntry.id",
    )

    __table_args__ = (
        Index("idx_order_number", "order_number"),
        Index("idx_order_status", "status"),
    )

    def __repr__(self) -> str:
        return f"Order(id={self.id}, order_number='{self.order_number}', status={self.status})"


class OrderHistoryEntry(BaseModel):
    """
    One entry in an order's audit trail.

    Attributes:
        order_id: Order this entry belongs to
        action: What happened, e.g. "Status Updated", "Prepress washout completed"
        from_status: Status before a transition (None for non-transition entries)
        to_status: Status after a transition (None for non-transition entries)
        actor_ref: Who did it, as given by the caller
        details: Free-text details
    """

    __tablename__ = TABLE_ORDER_HISTORY

    order_id = Column(
        Integer, ForeignKey(f"{TABLE_ORDER}.id", ondelete="CASCADE"), nullable=False
    )
    action = Column(String(100), nullable=False)
    from_status = Column(SQLEnum(OrderStatus), nullable=True)
    to_status = Column(SQLEnum(OrderStatus), nullable=True)
    actor_ref = Column(String(MAX_REFERENCE_LENGTH), nullable=True)
    details = Column(Text, nullable=True)

    order = relationship("Order", back_populates="history")

    __table_args__ = (Index("idx_order_history_order", "order_id"),)

    def __repr__(self) -> str:
        return f"OrderHistoryEntry(id={self.id}, order_id={self.order_id}, action='{self.action}')"
