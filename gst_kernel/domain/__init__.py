"""
Pure domain layer.

Value objects and the clock abstraction, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from gst_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from gst_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from gst_kernel.domain.values import Currency, Gstin, Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Currency",
    "Gstin",
    "Money",
]
