"""Services package - order lifecycle logic for Flexo Orders.

Architecture:
- Engine: pure functions over OrderRecord snapshots (status_engine,
  progress_projector, delivery_dispatcher, price_estimator)
- Persistence: order_repository, compare-and-swap writes over SQLAlchemy
- Orchestration: order_service, one transaction per operation
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy

Service Modules:
- status_engine: Transition legality and stage sync
- progress_projector: Percent / step / label views
- delivery_dispatcher: Delivery-mode payload validation
- price_estimator: Specification pricing
- order_repository: OrderRecord <-> database rows
- order_service: Entry points for an API layer

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    database,
    delivery_dispatcher,
    order_repository,
    order_service,
    price_estimator,
    progress_projector,
    status_engine,
)

from .exceptions import (
    AlreadyTerminal,
    ConcurrentModification,
    DatabaseError,
    IllegalTransition,
    InvalidDeliveryContext,
    InvalidSpecification,
    OrderNotFound,
    ServiceError,
    SpecificationLocked,
    StageNotActive,
    ValidationError,
)

__all__ = [
    # Modules
    "database",
    "delivery_dispatcher",
    "order_repository",
    "order_service",
    "price_estimator",
    "progress_projector",
    "status_engine",
    # Exceptions
    "AlreadyTerminal",
    "ConcurrentModification",
    "DatabaseError",
    "IllegalTransition",
    "InvalidDeliveryContext",
    "InvalidSpecification",
    "OrderNotFound",
    "ServiceError",
    "SpecificationLocked",
    "StageNotActive",
    "ValidationError",
]
