"""Section 125 benefits calculation and month-end close engine."""

__version__ = "0.1.0"
