"""SQLModel table exports."""

from .debt import DebtRecord
from .profile import Profile

__all__ = [
    "DebtRecord",
    "Profile",
]
