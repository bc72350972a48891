"""Service layer exception classes for Flexo Orders.

Every exception raised by the engine and the services derives from
ServiceError and carries an ``http_status_code`` so an API layer can map
it without a lookup table of its own.

Exception Hierarchy:
    ServiceError (base)
    ├── OrderNotFound                 404
    ├── ValidationError               400
    │   ├── InvalidSpecification      400
    │   └── InvalidDeliveryContext    400
    ├── IllegalTransition             409
    ├── AlreadyTerminal               409
    ├── StageNotActive                409
    ├── SpecificationLocked           409
    ├── ConcurrentModification        409
    └── DatabaseError                 500
"""

from typing import Dict, List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    http_status_code = 500


class OrderNotFound(ServiceError):
    """Raised when an order cannot be found by ID.

    Args:
        order_id: The order ID that was not found

    Example:
        >>> raise OrderNotFound(123)
        OrderNotFound: Order with ID 123 not found
    """

    http_status_code = 404

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order with ID {order_id} not found")


class ValidationError(ServiceError):
    """Raised when input validation fails.

    Args:
        errors: List of human-readable problems
    """

    http_status_code = 400

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidSpecification(ValidationError):
    """Raised when a print specification cannot be priced.

    Covers non-positive dimensions or repeat counts and thicknesses outside
    the allowed set.

    Example:
        >>> raise InvalidSpecification(["material_thickness: 1.9 is not an allowed thickness"])
        InvalidSpecification: Validation failed: material_thickness: 1.9 is not an allowed thickness
    """


class InvalidDeliveryContext(ValidationError):
    """Raised when a delivery payload is missing or malformed.

    Args:
        field_errors: Mapping of dotted field path to problem, e.g.
            {"destination.street": "is required"}

    Example:
        >>> raise InvalidDeliveryContext({"shipping_company": "is required"})
        InvalidDeliveryContext: Validation failed: shipping_company is required
    """

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        super().__init__([f"{path} {problem}" for path, problem in self.field_errors.items()])


class IllegalTransition(ServiceError):
    """Raised when the requested status is not a legal next status.

    Args:
        current: Status the order is in
        requested: Status the caller asked for

    Example:
        >>> raise IllegalTransition(OrderStatus.SUBMITTED, OrderStatus.IN_PREPRESS)
        IllegalTransition: Cannot move order from 'Submitted' to 'In Prepress'
    """

    http_status_code = 409

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order from '{_value(current)}' to '{_value(requested)}'"
        )


class AlreadyTerminal(ServiceError):
    """Raised when anything is attempted on a Completed or Cancelled order.

    Args:
        status: The terminal status
        operation: What the caller tried to do
    """

    http_status_code = 409

    def __init__(self, status, operation: str = "transition"):
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation}: order is already '{_value(status)}'")


class StageNotActive(ServiceError):
    """Raised when a stage-level update is attempted outside that stage.

    Args:
        status: The order's current status
        operation: What the caller tried to do

    Example:
        >>> raise StageNotActive(OrderStatus.DESIGNING, "update prepress sub-process")
        StageNotActive: Cannot update prepress sub-process while order is 'Designing'
    """

    http_status_code = 409

    def __init__(self, status, operation: str):
        self.status = status
        self.operation = operation
        super().__init__(f"Cannot {operation} while order is '{_value(status)}'")


class SpecificationLocked(ServiceError):
    """Raised when the specification is edited after design work began."""

    http_status_code = 409

    def __init__(self, status):
        self.status = status
        super().__init__(
            f"Specification can no longer be changed: order is '{_value(status)}'"
        )


class ConcurrentModification(ServiceError):
    """Raised when a compare-and-swap write loses to another writer.

    The caller should re-read the order and may retry once.

    Args:
        order_id: Order being written
        expected_status: Status the caller read
        actual_status: Status found in storage (None if the row vanished)
        expected_revision: Stages revision the caller read, for stage-only writes
        actual_revision: Stages revision found in storage
    """

    http_status_code = 409

    def __init__(
        self,
        order_id: int,
        expected_status,
        actual_status=None,
        expected_revision: Optional[int] = None,
        actual_revision: Optional[int] = None,
    ):
        self.order_id = order_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
        if expected_revision is not None:
            detail = f"expected revision {expected_revision}"
            if actual_revision is not None:
                detail += f", found revision {actual_revision}"
        else:
            detail = f"expected '{_value(expected_status)}'"
            if actual_status is not None:
                detail += f", found '{_value(actual_status)}'"
        super().__init__(f"Order {order_id} was modified concurrently ({detail})")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


def _value(status) -> str:
    return getattr(status, "value", status)
