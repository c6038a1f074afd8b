"""Month-scoped, human-readable codes (employee codes, payslip numbers).

A code is ``<prefix><zero-padded sequence>``, e.g. ``EMP2406001`` or
``PAY2024060001``. The next code is derived from the greatest existing code
sharing the prefix, so no counter table is needed. Stores keep the generated
code UNIQUE and raise ``DuplicateCodeError`` on a collision; ``with_retry``
re-reads the sequence and tries again.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, TypeVar

from ..core.constants import CODE_RETRY_ATTEMPTS
from ..core.exceptions import DuplicateCodeError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def month_prefix(tag: str, day: date, *, four_digit_year: bool = False) -> str:
    year = f"{day.year:04d}" if four_digit_year else f"{day.year % 100:02d}"
    return f"{tag}{year}{day.month:02d}"


def sequence_of(code: str, prefix: str) -> int:
    suffix = code[len(prefix):]
    if not code.startswith(prefix) or not suffix.isdigit():
        raise ValidationError(f"Code {code!r} does not belong to sequence {prefix!r}")
    return int(suffix)


def format_code(prefix: str, sequence: int, width: int) -> str:
    # Overflow widens instead of wrapping: 999 -> 1000.
    return f"{prefix}{sequence:0{width}d}"


class CodeSequencer:
    """Generate the next code for a prefix.

    ``latest_lookup(prefix)`` must return the greatest existing code with that
    prefix, ordered by length first and then lexicographically, so that a
    widened code (``EMP24061000``) sorts after every padded one.
    """

    def __init__(self, latest_lookup: Callable[[str], Optional[str]], *, width: int):
        if width < 1:
            raise ValueError("width must be positive")
        self._latest_lookup = latest_lookup
        self._width = int(width)

    @property
    def width(self) -> int:
        return self._width

    def next_code(self, prefix: str) -> str:
        latest = self._latest_lookup(prefix)
        sequence = 1
        if latest:
            sequence = sequence_of(latest, prefix) + 1
        return format_code(prefix, sequence, self._width)


def with_retry(
    sequencer: CodeSequencer,
    prefix: str,
    create: Callable[[str], T],
    *,
    attempts: int = CODE_RETRY_ATTEMPTS,
) -> T:
    """Call ``create(code)`` with a fresh code until it does not collide."""

    for attempt in range(1, attempts + 1):
        code = sequencer.next_code(prefix)
        try:
            return create(code)
        except DuplicateCodeError:
            logger.warning("Code %s already taken (attempt %d/%d)", code, attempt, attempts)
            if attempt == attempts:
                raise
    raise DuplicateCodeError(f"Could not allocate a code for prefix {prefix}")
