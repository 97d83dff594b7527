"""
Commission Service

Handles the earning side of the associate ledger:
- Commission generation from received payments (at most once per payment)
- Project completion approval with batch commission generation
- Associate balance snapshot
- Commission listings and admin dashboard figures
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.commission import Commission, CommissionStatus
from app.models.payment import Payment, PaymentStatus
from app.models.project import Project, ProjectStatus
from app.models.user import User
from app.models.withdrawal import Withdrawal
from app.services.balance import AssociateBalance, calculate_commission_amount, compute_balance, to_money
from app.services.ledger_errors import (
    AlreadyGeneratedError,
    LedgerError,
    LedgerForbiddenError,
    PaymentNotFoundError,
    PaymentNotReceivedError,
    ProjectAlreadyCompletedError,
    ProjectNotFoundError,
)
from app.services.withdrawal_state_machine import WithdrawalStatus

logger = logging.getLogger(__name__)


class CommissionService:
    """Service for commission generation and associate balances."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========================================================================
    # Commission Generation
    # ========================================================================

    async def generate_commission_from_payment(
        self,
        payment_id: uuid.UUID,
        requested_by: Optional[User] = None,
    ) -> Commission:
        """
        Create the commission for a received payment.

        Args:
            payment_id: Payment that earned the commission
            requested_by: Caller; associates may only generate for their own
                payments, admins (or internal callers passing None) for any.

        Raises:
            PaymentNotFoundError, LedgerForbiddenError,
            PaymentNotReceivedError, AlreadyGeneratedError
        """
        result = await self.db.execute(
            select(Payment)
            .options(selectinload(Payment.project))
            .where(Payment.id == payment_id)
        )
        payment = result.scalar_one_or_none()

        if not payment:
            raise PaymentNotFoundError("Payment not found", details={"payment_id": str(payment_id)})

        if requested_by is not None and not requested_by.is_admin and payment.associate_id != requested_by.id:
            raise LedgerForbiddenError("You can only generate commissions for your own payments")

        if payment.status != PaymentStatus.RECEIVED.value:
            raise PaymentNotReceivedError(
                "Payment not received",
                details={"payment_id": str(payment_id), "status": payment.status},
            )

        existing = await self.db.execute(
            select(Commission.id).where(Commission.payment_id == payment_id)
        )
        if existing.scalar_one_or_none():
            raise AlreadyGeneratedError(
                "Commission already generated for this payment",
                details={"payment_id": str(payment_id)},
            )

        project = payment.project
        commission_rate = project.commission_rate
        if commission_rate is None:
            commission_rate = settings.DEFAULT_COMMISSION_RATE

        now = datetime.now(timezone.utc)
        values = {
            "id": uuid.uuid4(),
            "associate_id": payment.associate_id,
            "payment_id": payment.id,
            "project_id": project.id,
            "sale_amount": to_money(payment.amount),
            "commission_rate": commission_rate,
            "commission_amount": calculate_commission_amount(payment.amount, commission_rate),
            "status": CommissionStatus.EARNED.value,
            "earned_date": now,
            "created_at": now,
        }

        inserted = await self._insert_commission_once(values)
        if not inserted:
            # A concurrent request inserted between our check and our insert
            await self.db.rollback()
            logger.warning(f"Commission for payment {payment_id} lost insert race")
            raise AlreadyGeneratedError(
                "Commission already generated for this payment",
                details={"payment_id": str(payment_id)},
            )

        await self.db.commit()

        commission = await self.get_commission(values["id"])
        logger.info(
            f"Commission {commission.id} generated: payment={payment_id} "
            f"associate={commission.associate_id} amount={commission.commission_amount}"
        )
        return commission

    async def _insert_commission_once(self, values: dict) -> bool:
        """
        INSERT ... ON CONFLICT (payment_id) DO NOTHING.

        Returns True when the row was written, False when another commission
        for the same payment already exists.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(Commission)
        elif dialect == "sqlite":
            stmt = sqlite.insert(Commission)
        else:
            raise RuntimeError(f"Unsupported database dialect for commission ledger: {dialect}")

        stmt = stmt.values(**values).on_conflict_do_nothing(index_elements=["payment_id"])
        result = await self.db.execute(stmt)
        return (result.rowcount or 0) == 1

    async def get_commission(self, commission_id: uuid.UUID) -> Optional[Commission]:
        result = await self.db.execute(
            select(Commission)
            .options(selectinload(Commission.payment), selectinload(Commission.project))
            .where(Commission.id == commission_id)
        )
        return result.scalar_one_or_none()

    async def _get_commissions(self, commission_ids: List[uuid.UUID]) -> List[Commission]:
        if not commission_ids:
            return []
        result = await self.db.execute(
            select(Commission)
            .options(selectinload(Commission.payment), selectinload(Commission.project))
            .where(Commission.id.in_(commission_ids))
            .order_by(Commission.created_at)
        )
        return list(result.scalars().all())

    # ========================================================================
    # Project Completion
    # ========================================================================

    async def approve_project_completion(
        self,
        project_id: uuid.UUID,
        admin_id: uuid.UUID,
    ) -> Tuple[Project, List[Commission]]:
        """
        Mark a project COMPLETED and generate commissions for its received payments.

        Only the caller whose conditional update flips the status scans the
        payments. Payments that already have a commission (or fail for any
        other ledger reason) are skipped; the rest are still processed. A
        database fault stops the batch after logging the payments it did not
        reach; the project stays COMPLETED.

        Returns:
            (updated project, newly generated commissions)
        """
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()

        if not project:
            raise ProjectNotFoundError("Project not found", details={"project_id": str(project_id)})

        if project.status == ProjectStatus.COMPLETED.value:
            raise ProjectAlreadyCompletedError("Project already completed")

        now = datetime.now(timezone.utc)
        flipped = await self.db.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status != ProjectStatus.COMPLETED.value,
            )
            .values(
                status=ProjectStatus.COMPLETED.value,
                approved_by=admin_id,
                approved_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if (flipped.rowcount or 0) != 1:
            await self.db.rollback()
            logger.warning(f"Project {project_id} completed concurrently by another admin")
            raise ProjectAlreadyCompletedError("Project already completed")

        await self.db.commit()
        await self.db.refresh(project)
        logger.info(f"Project {project_id} marked completed by {admin_id}")

        payments_result = await self.db.execute(
            select(Payment.id)
            .where(
                Payment.project_id == project_id,
                Payment.status == PaymentStatus.RECEIVED.value,
            )
            .order_by(Payment.created_at)
        )
        payment_ids = list(payments_result.scalars().all())

        generated_ids = []
        for index, payment_id in enumerate(payment_ids):
            try:
                commission = await self.generate_commission_from_payment(payment_id)
            except AlreadyGeneratedError:
                continue
            except LedgerError as e:
                logger.warning(f"Skipping payment {payment_id} in project {project_id}: {e.code} {e.message}")
                continue
            except Exception:
                unprocessed = ", ".join(str(p) for p in payment_ids[index:])
                logger.error(
                    f"Commission batch for completed project {project_id} stopped at payment {payment_id}; "
                    f"generate these individually: {unprocessed}"
                )
                raise
            generated_ids.append(commission.id)

        # A lost insert race rolls the session back and expires loaded rows
        await self.db.refresh(project)
        commissions = await self._get_commissions(generated_ids)

        logger.info(
            f"Project {project_id} approval generated {len(commissions)} commissions "
            f"from {len(payment_ids)} received payments"
        )
        return project, commissions

    # ========================================================================
    # Balance
    # ========================================================================

    async def get_associate_stats(self, associate_id: uuid.UUID) -> AssociateBalance:
        """Balance snapshot for an associate. Read-only."""
        earned_result = await self.db.execute(
            select(
                func.count(Commission.id),
                func.coalesce(func.sum(Commission.commission_amount), 0),
            ).where(Commission.associate_id == associate_id)
        )
        commission_count, total_earned = earned_result.one()

        withdrawal_result = await self.db.execute(
            select(
                Withdrawal.status,
                func.coalesce(func.sum(Withdrawal.amount), 0),
            )
            .where(
                Withdrawal.associate_id == associate_id,
                Withdrawal.status.in_([WithdrawalStatus.COMPLETED, WithdrawalStatus.PENDING]),
            )
            .group_by(Withdrawal.status)
        )
        sums = {status: amount for status, amount in withdrawal_result.all()}

        return compute_balance(
            commission_count=commission_count,
            total_earned=total_earned,
            total_withdrawn=sums.get(WithdrawalStatus.COMPLETED),
            pending_withdrawal=sums.get(WithdrawalStatus.PENDING),
        )

    # ========================================================================
    # Listings & Reports
    # ========================================================================

    async def list_associate_commissions(self, associate_id: uuid.UUID) -> List[Commission]:
        """All commissions of an associate, most recently earned first."""
        result = await self.db.execute(
            select(Commission)
            .options(selectinload(Commission.payment), selectinload(Commission.project))
            .where(Commission.associate_id == associate_id)
            .order_by(Commission.earned_date.desc())
        )
        return list(result.scalars().all())

    async def get_dashboard_stats(self) -> dict:
        """Ledger-wide totals for the admin dashboard."""
        commission_result = await self.db.execute(
            select(
                func.count(Commission.id),
                func.coalesce(func.sum(Commission.commission_amount), 0),
            )
        )
        total_commissions, total_commission_amount = commission_result.one()

        withdrawal_result = await self.db.execute(
            select(
                Withdrawal.status,
                func.count(Withdrawal.id),
                func.coalesce(func.sum(Withdrawal.amount), 0),
            )
            .where(Withdrawal.status.in_([WithdrawalStatus.PENDING, WithdrawalStatus.COMPLETED]))
            .group_by(Withdrawal.status)
        )
        by_status = {status: (count, amount) for status, count, amount in withdrawal_result.all()}
        pending_count, pending_amount = by_status.get(WithdrawalStatus.PENDING, (0, 0))
        completed_count, completed_amount = by_status.get(WithdrawalStatus.COMPLETED, (0, 0))

        return {
            "total_commissions": total_commissions,
            "total_commission_amount": to_money(total_commission_amount),
            "pending_withdrawals": pending_count,
            "pending_withdrawal_amount": to_money(pending_amount),
            "completed_withdrawals": completed_count,
            "completed_withdrawal_amount": to_money(completed_amount),
        }
