"""
Withdrawal Service

Handles the debit side of the associate ledger:
- Balance-gated withdrawal requests (serialized per associate)
- Admin processing of pending withdrawals (single atomic transition)
- Associate history and paginated admin listing
"""

import logging
import math
import random
import string
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.core.enum_utils import normalize_choice, to_enum
from app.models.user import User
from app.models.withdrawal import Withdrawal, WithdrawalMethod
from app.services.balance import to_money
from app.services.commission_service import CommissionService
from app.services.ledger_errors import (
    AlreadyProcessedError,
    BelowMinimumError,
    InsufficientBalanceError,
    LedgerError,
    LedgerInvalidInputError,
    LedgerNotFoundError,
    MissingFieldsError,
    WithdrawalNotFoundError,
)
from app.services.withdrawal_state_machine import (
    WithdrawalStatus,
    get_transition_action,
    validate_target_status,
    validate_transition,
)

logger = logging.getLogger(__name__)


class WithdrawalService:
    """Service for associate withdrawal requests and their processing."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========================================================================
    # Reference Generation
    # ========================================================================

    async def generate_reference(self) -> str:
        """
        Generate unique withdrawal reference: WD + timestamp + 6 alphanumerics
        Example: WD20260315101500K7X2MQ
        """
        while True:
            suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
            stamp = datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')
            reference = f"{settings.WITHDRAWAL_REFERENCE_PREFIX}{stamp}{suffix}"

            result = await self.db.execute(
                select(Withdrawal.id).where(Withdrawal.reference == reference)
            )
            if not result.scalar_one_or_none():
                return reference

    # ========================================================================
    # Request
    # ========================================================================

    async def request_withdrawal(
        self,
        associate_id: uuid.UUID,
        amount: Any,
        method: Any,
        account_details: Optional[str],
        notes: Optional[str] = None,
    ) -> Withdrawal:
        """
        Create a PENDING withdrawal if the associate's balance covers it.

        The associate's ledger row is write-locked before the balance is read
        and stays locked until the withdrawal is committed, so concurrent
        requests from the same associate are checked one after another.

        Raises:
            MissingFieldsError, LedgerInvalidInputError (bad method),
            BelowMinimumError, InsufficientBalanceError
        """
        amount = self._parse_amount(amount)
        if amount is None or not method or not account_details or not str(account_details).strip():
            raise MissingFieldsError("Amount, method, and account details are required")

        withdrawal_method = to_enum(method, WithdrawalMethod)
        if withdrawal_method is None:
            raise LedgerInvalidInputError(
                "Invalid method. Must be BANK_TRANSFER, UPI, or CHEQUE",
                details={"method": str(method)},
                code="InvalidMethod",
            )

        minimum = to_money(settings.MIN_WITHDRAWAL_AMOUNT)
        if amount < minimum:
            raise BelowMinimumError(
                f"Minimum withdrawal amount is ₹{minimum:,}",
                details={"minimum": str(minimum)},
            )

        try:
            await self._lock_associate_ledger(associate_id)

            stats = await CommissionService(self.db).get_associate_stats(associate_id)
            if amount > stats.available_balance:
                raise InsufficientBalanceError(
                    f"Insufficient balance. Available: ₹{stats.available_balance:,}",
                    details={"available_balance": str(stats.available_balance)},
                )

            withdrawal = Withdrawal(
                associate_id=associate_id,
                amount=amount,
                method=withdrawal_method.value,
                account_details=str(account_details).strip(),
                status=WithdrawalStatus.PENDING,
                reference=await self.generate_reference(),
                notes=notes,
            )
            self.db.add(withdrawal)
            await self.db.commit()
        except LedgerError:
            # Release the ledger lock before reporting the rejection
            await self.db.rollback()
            raise

        await self.db.refresh(withdrawal)
        logger.info(
            f"Withdrawal {withdrawal.reference} requested: associate={associate_id} "
            f"amount={withdrawal.amount} method={withdrawal.method}"
        )
        return withdrawal

    async def _lock_associate_ledger(self, associate_id: uuid.UUID) -> None:
        """
        Bump users.ledger_version for the associate.

        The UPDATE holds the row lock (PostgreSQL) or the database write lock
        (SQLite) until the transaction ends.
        """
        result = await self.db.execute(
            update(User)
            .where(User.id == associate_id)
            .values(ledger_version=User.ledger_version + 1)
            .execution_options(synchronize_session=False)
        )
        if (result.rowcount or 0) != 1:
            raise LedgerNotFoundError(
                "Associate not found",
                details={"associate_id": str(associate_id)},
                code="AssociateNotFound",
            )

    @staticmethod
    def _parse_amount(amount: Any) -> Optional[Decimal]:
        """Return the amount as Decimal, or None when it is absent or zero."""
        if amount is None or amount == "":
            return None
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise LedgerInvalidInputError("Amount must be a number", details={"amount": str(amount)})
        if not value.is_finite():
            raise LedgerInvalidInputError("Amount must be a number", details={"amount": str(amount)})
        if value == 0:
            return None
        return to_money(value)

    # ========================================================================
    # Processing
    # ========================================================================

    async def process_withdrawal(
        self,
        withdrawal_id: uuid.UUID,
        admin_id: uuid.UUID,
        new_status: Any,
        notes: Optional[str] = None,
    ) -> Withdrawal:
        """
        Move a PENDING withdrawal to COMPLETED, FAILED or CANCELLED.

        The transition is a single conditional UPDATE guarded on
        status = PENDING; of several concurrent admins exactly one wins.
        The admin's notes replace the request notes, so omitting them clears
        the associate's note.

        Raises:
            InvalidStatusError, WithdrawalNotFoundError, AlreadyProcessedError
        """
        target = normalize_choice(new_status) or ""
        validate_target_status(target)

        result = await self.db.execute(
            select(Withdrawal).where(Withdrawal.id == withdrawal_id)
        )
        withdrawal = result.scalar_one_or_none()
        if not withdrawal:
            raise WithdrawalNotFoundError(
                "Withdrawal request not found",
                details={"withdrawal_id": str(withdrawal_id)},
            )

        validate_transition(withdrawal.status, target)

        now = datetime.now(timezone.utc)
        transitioned = await self.db.execute(
            update(Withdrawal)
            .where(
                Withdrawal.id == withdrawal_id,
                Withdrawal.status == WithdrawalStatus.PENDING,
            )
            .values(
                status=target,
                processed_by=admin_id,
                processed_date=now,
                notes=notes,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if (transitioned.rowcount or 0) != 1:
            await self.db.rollback()
            logger.warning(f"Withdrawal {withdrawal_id} processed concurrently; {target} rejected")
            raise AlreadyProcessedError("Withdrawal already processed")

        await self.db.commit()
        await self.db.refresh(withdrawal)

        logger.info(
            f"Withdrawal {withdrawal.reference} "
            f"{get_transition_action(WithdrawalStatus.PENDING, target)} by {admin_id}"
        )
        return withdrawal

    # ========================================================================
    # Listings
    # ========================================================================

    async def list_associate_withdrawals(self, associate_id: uuid.UUID) -> List[Withdrawal]:
        """Withdrawal history of an associate, newest first."""
        result = await self.db.execute(
            select(Withdrawal)
            .where(Withdrawal.associate_id == associate_id)
            .order_by(Withdrawal.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_all_withdrawals(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        status: Optional[str] = None,
    ) -> dict:
        """Paginated withdrawals across all associates, newest first."""
        page = max(int(page or 1), 1)
        limit = int(limit or settings.DEFAULT_PAGE_SIZE)
        limit = min(max(limit, 1), settings.MAX_PAGE_SIZE)
        status_filter = normalize_choice(status)

        query = (
            select(Withdrawal)
            .options(selectinload(Withdrawal.associate), selectinload(Withdrawal.processor))
        )
        count_query = select(func.count(Withdrawal.id))

        if status_filter:
            query = query.where(Withdrawal.status == status_filter)
            count_query = count_query.where(Withdrawal.status == status_filter)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Withdrawal.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        withdrawals = list(result.scalars().all())

        return {
            "withdrawals": withdrawals,
            "pagination": {
                "current": page,
                "pages": math.ceil(total / limit) if total else 0,
                "total": total,
            },
        }
