"""
Identifier, order-number and timestamp generation.

Every synthesized default goes through one IdGenerator so the id format and
the order-number format are decided in a single place.
"""

from __future__ import annotations

from datetime import datetime, timezone
import threading
import time

ORDER_PREFIX = "DD"
ORDER_DIGITS = 8


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    return utc_now().isoformat()


def order_number_from_millis(millis: int) -> str:
    return f"{ORDER_PREFIX}{str(millis)[-ORDER_DIGITS:].zfill(ORDER_DIGITS)}"


class IdGenerator:
    """Millisecond-based ids, strictly increasing within the process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next_millis(self) -> int:
        with self._lock:
            now = int(time.time() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now

    def next_id(self) -> int:
        return self.next_millis()

    def next_order_number(self) -> str:
        # Two orders created in the same millisecond still get distinct numbers.
        return order_number_from_millis(self.next_millis())


default_generator = IdGenerator()
