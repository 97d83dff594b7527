"""Withdrawal ledger model.

An associate's request to cash out earned commission. Created PENDING and
moved exactly once by an admin to COMPLETED, FAILED or CANCELLED.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType

if TYPE_CHECKING:
    from app.models.user import User


class WithdrawalMethod(str, Enum):
    """Payout channel requested by the associate."""
    BANK_TRANSFER = "BANK_TRANSFER"
    UPI = "UPI"
    CHEQUE = "CHEQUE"


class Withdrawal(Base):
    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_withdrawal_amount_positive"),
        Index("ix_withdrawals_associate_status", "associate_id", "status"),
        Index("ix_withdrawals_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        primary_key=True,
        default=uuid.uuid4
    )

    associate_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="BANK_TRANSFER, UPI, CHEQUE"
    )
    account_details: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="PENDING",
        index=True
    )

    reference: Mapped[str] = mapped_column(
        String(40),
        unique=True,
        nullable=False,
        comment="System generated e.g. WD20260101120000K7X2MQ"
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Processing
    processed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    processed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships
    associate: Mapped["User"] = relationship("User", foreign_keys=[associate_id], viewonly=True)
    processor: Mapped[Optional["User"]] = relationship("User", foreign_keys=[processed_by], viewonly=True)

    def __repr__(self) -> str:
        return f"<Withdrawal(reference='{self.reference}', status='{self.status}')>"
