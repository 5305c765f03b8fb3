"""Service module exports."""

from . import debts, projections

__all__ = [
    "debts",
    "projections",
]
