"""
Enumerations for the order lifecycle.

This module is the single home of every status, stage and option name used
by the engine. The Status Engine and the Progress Projector both read the
pipeline ordering from here:
- OrderStatus / STATUS_PIPELINE: top-level status and its total order
- StageStatus, Stage, PrepressSubProcess: nested stage tracking
- Material, MaterialThickness, PrintingMode, InkColor, DimensionUnit:
  print specification options
- OrderType, Priority: order metadata
- DeliveryMode: the three delivery variants
- ViewerRole: who is looking at a progress view
"""

from decimal import Decimal
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    """
    Top-level order status.

    Pipeline (each step may only advance to the next):
        SUBMITTED -> DESIGNING -> DESIGN_DONE -> IN_PREPRESS
        -> READY_FOR_DELIVERY -> DELIVERING -> COMPLETED

    CANCELLED is a terminal branch reachable only from the cancellable
    window. IN_REVIEW is the early-review status carried by records from
    the previous system; it ranks with SUBMITTED and advances to DESIGNING.
    """

    SUBMITTED = "Submitted"
    IN_REVIEW = "In Review"
    DESIGNING = "Designing"
    DESIGN_DONE = "Design Done"
    IN_PREPRESS = "In Prepress"
    READY_FOR_DELIVERY = "Ready for Delivery"
    DELIVERING = "Delivering"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


STATUS_PIPELINE = (
    OrderStatus.SUBMITTED,
    OrderStatus.DESIGNING,
    OrderStatus.DESIGN_DONE,
    OrderStatus.IN_PREPRESS,
    OrderStatus.READY_FOR_DELIVERY,
    OrderStatus.DELIVERING,
    OrderStatus.COMPLETED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Statuses that sit outside the pipeline but share a rank with a member of it
_RANK_ALIASES = {OrderStatus.IN_REVIEW: OrderStatus.SUBMITTED}


def status_rank(status: OrderStatus) -> Optional[int]:
    """
    Position of a status in the pipeline.

    Returns:
        Zero-based rank, or None for CANCELLED (which is not ordered).
    """
    status = _RANK_ALIASES.get(status, status)
    if status not in STATUS_PIPELINE:
        return None
    return STATUS_PIPELINE.index(status)


class StageStatus(str, Enum):
    """Sub-state of a stage or prepress sub-process."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Stage(str, Enum):
    """The four canonical stages shown on progress displays, in order."""

    SUBMISSION = "Submission"
    DESIGN = "Design"
    PREPRESS = "Prepress"
    DELIVERY = "Delivery"


class PrepressSubProcess(str, Enum):
    """
    Named units of work within the prepress stage.

    No completion order is enforced between them.
    """

    POSITIONING = "positioning"
    RIPPING = "ripping"
    LASER_IMAGING = "laser_imaging"
    EXPOSURE = "exposure"
    WASHOUT = "washout"
    DRYING = "drying"
    FINISHING = "finishing"


class Material(str, Enum):
    """Plate stock."""

    FLINT = "Flint"
    STRONG = "Strong"
    TAIWAN = "Taiwan"


class MaterialThickness(Enum):
    """Allowed plate thicknesses in millimetres."""

    THIN = Decimal("1.14")
    STANDARD = Decimal("1.70")
    THICK = Decimal("2.54")


class PrintingMode(str, Enum):
    SURFACE = "Surface Printing"
    REVERSE = "Reverse Printing"


class InkColor(str, Enum):
    """
    Named ink colors.

    CMYK_COMBINED is the combined process-color marker and counts as four
    separations when the color count is computed.
    """

    CYAN = "Cyan"
    MAGENTA = "Magenta"
    YELLOW = "Yellow"
    BLACK = "Black"
    CMYK_COMBINED = "CMYK Combined"
    RED = "Red"
    BLUE = "Blue"
    GREEN = "Green"
    GOLDEN = "Golden"
    SILVER = "Silver"
    WHITE = "White"
    OTHER = "Other"


class DimensionUnit(str, Enum):
    MM = "mm"
    CM = "cm"
    INCH = "inch"


class OrderType(str, Enum):
    NEW = "New Order"
    EXISTING = "Existing"
    EXISTING_WITH_CHANGES = "Existing With Changes"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class DeliveryMode(str, Enum):
    """
    Delivery variants; exactly one is active per order.

    Values:
        DIRECT: Courier hands the plates over at a destination address
        SHIPPING_COMPANY: A third-party carrier ships the plates
        CLIENT_COLLECTION: The client picks the plates up
    """

    DIRECT = "direct"
    SHIPPING_COMPANY = "shipping-company"
    CLIENT_COLLECTION = "client-collection"


class ViewerRole(str, Enum):
    """Role of whoever is reading a progress view."""

    CLIENT = "client"
    EMPLOYEE = "employee"
    PREPRESS = "prepress"
    COURIER = "courier"
    MANAGER = "manager"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self is not ViewerRole.CLIENT
