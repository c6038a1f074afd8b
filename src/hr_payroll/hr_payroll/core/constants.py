"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10

EMPLOYEE_CODE_TAG = "EMP"
EMPLOYEE_CODE_WIDTH = 3
PAYSLIP_NUMBER_TAG = "PAY"
PAYSLIP_NUMBER_WIDTH = 4
CODE_RETRY_ATTEMPTS = 3

PERIOD_NAME_MAX_LENGTH = 50

# Regular working window, overtime must fall outside it.
REGULAR_HOURS_START = 8
REGULAR_HOURS_END = 17
MAX_OVERTIME_HOURS = Decimal("3")
OVERTIME_HOURS_TOLERANCE = Decimal("0.1")

HOURS_PER_DAY = Decimal("8")
OVERTIME_MULTIPLIER = Decimal("1.5")
TAX_THRESHOLD = Decimal("5000")
TAX_RATE = Decimal("0.10")
