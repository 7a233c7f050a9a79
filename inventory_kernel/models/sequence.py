"""
Module: inventory_kernel.models.sequence
Responsibility: Named counter rows backing SequenceService.

Each row holds the last value handed out for one sequence.  The row is
locked with SELECT ... FOR UPDATE for every allocation.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class SequenceCounter(Base):
    """Sequence counter table."""

    __tablename__ = "sequence_counters"

    # Sequence name (e.g., "inventory_movement")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
