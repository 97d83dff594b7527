"""Customer payment against a project.

Owned by the payment service. A payment in RECEIVED status is the event
that earns the attributed associate a commission.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType

if TYPE_CHECKING:
    from app.models.project import Project


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    RECEIVED = "RECEIVED"
    BOUNCED = "BOUNCED"
    CANCELLED = "CANCELLED"


class PaymentType(str, Enum):
    BOOKING = "BOOKING"
    INSTALLMENT = "INSTALLMENT"
    FINAL = "FINAL"
    TOKEN = "TOKEN"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payment_amount_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        primary_key=True,
        default=uuid.uuid4
    )

    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    associate_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentType.INSTALLMENT.value
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        index=True
    )
    received_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    project: Mapped["Project"] = relationship("Project")

    def __repr__(self) -> str:
        return f"<Payment(customer='{self.customer_name}', amount={self.amount}, status='{self.status}')>"
