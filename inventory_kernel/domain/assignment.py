"""Assignment lifecycle: ``active -> returned`` (terminal)."""

from __future__ import annotations

from enum import Enum


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"


def can_return(current: AssignmentStatus | str) -> bool:
    return AssignmentStatus(current) == AssignmentStatus.ACTIVE
