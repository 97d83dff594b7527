"""Commission ledger model.

One commission per received payment, earned by the associate the payment
is attributed to. Rows are written once and never recomputed: the rate is a
snapshot of the project's rate at generation time.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy import UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType, RateType

if TYPE_CHECKING:
    from app.models.payment import Payment
    from app.models.project import Project


class CommissionStatus(str, Enum):
    """
    Commission status.
    Informational only: generation writes EARNED and no operation moves it.
    """
    EARNED = "EARNED"
    PENDING = "PENDING"
    WITHDRAWN = "WITHDRAWN"


class Commission(Base):
    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint("payment_id", name="uq_commission_payment"),
        CheckConstraint("sale_amount >= 0", name="ck_commission_sale_amount"),
        CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100",
            name="ck_commission_rate_range"
        ),
        CheckConstraint("commission_amount >= 0", name="ck_commission_amount"),
        Index("ix_commissions_associate_earned", "associate_id", "earned_date"),
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
    payment_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("payments.id", ondelete="RESTRICT"),
        nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(),
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    sale_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(
        RateType,
        nullable=False,
        comment="Project rate % at generation time"
    )
    commission_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CommissionStatus.EARNED.value
    )

    earned_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    # Relationships (read-only joins for listings)
    payment: Mapped["Payment"] = relationship("Payment", viewonly=True)
    project: Mapped["Project"] = relationship("Project", viewonly=True)

    def __repr__(self) -> str:
        return f"<Commission(payment={self.payment_id}, amount={self.commission_amount})>"
