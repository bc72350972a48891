"""
Constants for the Flexo Orders lifecycle engine.

This module defines all system-wide constants including:
- Application metadata
- Price estimation constants
- Order numbering
- Database and display constants
"""

from decimal import Decimal

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Flexo Orders"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# ============================================================================
# Price Estimation
# ============================================================================

# "CMYK Combined" counts as four separations
PROCESS_COLOR_WEIGHT = 4

# Every plate job prints at least one color
MIN_COLOR_COUNT = 1

# Estimates are rounded to cents
CURRENCY_QUANTUM = Decimal("0.01")

DEFAULT_CURRENCY = "USD"

# ============================================================================
# Order Numbering
# ============================================================================

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_SEQUENCE_WIDTH = 4

# ============================================================================
# Progress Display
# ============================================================================

TOTAL_STAGES = 4

STAGE_LABEL_COMPLETED = "Completed"
STAGE_LABEL_IN_PROGRESS = "In Progress"
STAGE_LABEL_PENDING = "Pending"

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "flexo_orders.db"
DEFAULT_DB_TIMEOUT = 30

TABLE_ORDER = "orders"
TABLE_ORDER_HISTORY = "order_history"

# ============================================================================
# Field Limits
# ============================================================================

MAX_TITLE_LENGTH = 200
MAX_REFERENCE_LENGTH = 64
