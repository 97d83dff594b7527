"""Tests for commission generation, project approval and balances."""
import logging
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.models import Commission, Payment, Project, User
from app.services.commission_service import CommissionService
from app.services.ledger_errors import (
    AlreadyGeneratedError,
    LedgerForbiddenError,
    PaymentNotFoundError,
    PaymentNotReceivedError,
    ProjectAlreadyCompletedError,
    ProjectNotFoundError,
)
from app.services.withdrawal_service import WithdrawalService


async def count_commissions(db, payment_id=None) -> int:
    query = select(func.count(Commission.id))
    if payment_id is not None:
        query = query.where(Commission.payment_id == payment_id)
    return (await db.execute(query)).scalar()


# ===================================================================
# Generation
# ===================================================================

class TestGenerateCommission:

    async def test_generates_at_project_rate(self, db, ledger, add_payment):
        """10,000 at 2% earns 200."""
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000)

        commission = await CommissionService(db).generate_commission_from_payment(payment_id)

        assert commission.commission_amount == Decimal("200.00")
        assert commission.commission_rate == Decimal("2.00")
        assert commission.sale_amount == Decimal("10000.00")
        assert commission.associate_id == ledger.associate_id
        assert commission.project_id == ledger.project_id
        assert commission.status == "EARNED"
        assert commission.payment.customer_name == "Karan Malhotra"
        assert commission.project.name == "SP City Greens"

    async def test_second_generation_is_rejected(self, db, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000)
        service = CommissionService(db)
        await service.generate_commission_from_payment(payment_id)

        with pytest.raises(AlreadyGeneratedError) as exc_info:
            await service.generate_commission_from_payment(payment_id)

        assert exc_info.value.status_code == 409
        assert await count_commissions(db, payment_id) == 1

    async def test_default_rate_when_project_has_none(self, db, ledger, add_project, add_payment):
        project_id = await add_project(commission_rate=None)
        payment_id = await add_payment(project_id, ledger.associate_id, 50000)

        commission = await CommissionService(db).generate_commission_from_payment(payment_id)

        assert commission.commission_rate == Decimal("2.00")
        assert commission.commission_amount == Decimal("1000.00")

    async def test_zero_rate_is_respected(self, db, ledger, add_project, add_payment):
        """A 0% project earns a 0.00 commission; the default applies only to a missing rate."""
        project_id = await add_project(commission_rate=Decimal("0"))
        payment_id = await add_payment(project_id, ledger.associate_id, 50000)

        commission = await CommissionService(db).generate_commission_from_payment(payment_id)

        assert commission.commission_amount == Decimal("0.00")

    @pytest.mark.parametrize("status", ["PENDING", "BOUNCED", "CANCELLED"])
    async def test_payment_must_be_received(self, db, ledger, add_payment, status):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000, status=status)

        with pytest.raises(PaymentNotReceivedError):
            await CommissionService(db).generate_commission_from_payment(payment_id)

        assert await count_commissions(db) == 0

    async def test_unknown_payment(self, db, ledger):
        with pytest.raises(PaymentNotFoundError) as exc_info:
            await CommissionService(db).generate_commission_from_payment(uuid.uuid4())
        assert exc_info.value.status_code == 404

    async def test_associate_cannot_generate_for_others(self, db, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000)
        other = await db.get(User, ledger.other_associate_id)

        with pytest.raises(LedgerForbiddenError):
            await CommissionService(db).generate_commission_from_payment(payment_id, requested_by=other)

    async def test_admin_can_generate_for_anyone(self, db, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000)
        admin = await db.get(User, ledger.admin_id)

        commission = await CommissionService(db).generate_commission_from_payment(payment_id, requested_by=admin)

        assert commission.associate_id == ledger.associate_id


# ===================================================================
# Project approval
# ===================================================================

class TestApproveProjectCompletion:

    async def test_generates_for_received_payments_only(self, db, ledger, add_payment):
        await add_payment(ledger.project_id, ledger.associate_id, 10000)
        await add_payment(ledger.project_id, ledger.other_associate_id, 20000)
        await add_payment(ledger.project_id, ledger.associate_id, 30000, status="PENDING")

        project, commissions = await CommissionService(db).approve_project_completion(
            ledger.project_id, ledger.admin_id
        )

        assert project.status == "COMPLETED"
        assert project.approved_by == ledger.admin_id
        assert project.approved_at is not None
        assert sorted(c.commission_amount for c in commissions) == [Decimal("200.00"), Decimal("400.00")]

    async def test_skips_payments_that_already_have_commissions(self, db, ledger, add_payment):
        first = await add_payment(ledger.project_id, ledger.associate_id, 10000)
        await add_payment(ledger.project_id, ledger.associate_id, 20000)
        service = CommissionService(db)
        await service.generate_commission_from_payment(first)

        project, commissions = await service.approve_project_completion(ledger.project_id, ledger.admin_id)

        assert len(commissions) == 1
        assert commissions[0].commission_amount == Decimal("400.00")
        assert await count_commissions(db) == 2

    async def test_second_approval_is_rejected(self, db, ledger, add_payment):
        await add_payment(ledger.project_id, ledger.associate_id, 10000)
        service = CommissionService(db)
        await service.approve_project_completion(ledger.project_id, ledger.admin_id)

        with pytest.raises(ProjectAlreadyCompletedError) as exc_info:
            await service.approve_project_completion(ledger.project_id, ledger.admin_id)

        assert exc_info.value.status_code == 409
        assert await count_commissions(db) == 1

    async def test_project_without_payments(self, db, ledger):
        project, commissions = await CommissionService(db).approve_project_completion(
            ledger.project_id, ledger.admin_id
        )

        assert project.status == "COMPLETED"
        assert commissions == []

    async def test_unknown_project(self, db, ledger):
        with pytest.raises(ProjectNotFoundError):
            await CommissionService(db).approve_project_completion(uuid.uuid4(), ledger.admin_id)

    async def test_status_persisted(self, db, session_factory, ledger):
        await CommissionService(db).approve_project_completion(ledger.project_id, ledger.admin_id)

        async with session_factory() as other:
            project = await other.get(Project, ledger.project_id)
            assert project.status == "COMPLETED"

    async def test_database_fault_logs_unreached_payments(self, db, ledger, add_payment, caplog):
        for amount in (10000, 20000, 30000):
            await add_payment(ledger.project_id, ledger.associate_id, amount)
        service = CommissionService(db)
        generate = service.generate_commission_from_payment
        seen = []

        async def fail_on_second(payment_id, requested_by=None):
            seen.append(payment_id)
            if len(seen) == 2:
                raise RuntimeError("connection reset")
            return await generate(payment_id, requested_by=requested_by)

        service.generate_commission_from_payment = fail_on_second

        with caplog.at_level(logging.ERROR, logger="app.services.commission_service"):
            with pytest.raises(RuntimeError):
                await service.approve_project_completion(ledger.project_id, ledger.admin_id)

        unreached = (await db.execute(
            select(Payment.id).where(Payment.project_id == ledger.project_id, Payment.id.notin_(seen))
        )).scalars().all()
        assert len(unreached) == 1
        assert str(seen[0]) not in caplog.text
        for payment_id in [seen[1], *unreached]:
            assert str(payment_id) in caplog.text
        assert await count_commissions(db) == 1


# ===================================================================
# Balance, listings and dashboard
# ===================================================================

class TestAssociateStats:

    async def test_empty_balance(self, db, ledger):
        stats = await CommissionService(db).get_associate_stats(ledger.associate_id)

        assert stats.total_commissions == 0
        assert stats.available_balance == Decimal("0.00")

    async def test_balance_reflects_withdrawals(self, db, ledger, add_payment):
        """Earned 5,000; 1,000 paid out; 500 pending; 3,500 available."""
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 250000)
        await CommissionService(db).generate_commission_from_payment(payment_id)

        withdrawals = WithdrawalService(db)
        paid = await withdrawals.request_withdrawal(ledger.associate_id, 1000, "UPI", "asha@okaxis")
        await withdrawals.process_withdrawal(paid.id, ledger.admin_id, "COMPLETED")
        failed = await withdrawals.request_withdrawal(ledger.associate_id, 700, "UPI", "asha@okaxis")
        await withdrawals.process_withdrawal(failed.id, ledger.admin_id, "FAILED")
        await withdrawals.request_withdrawal(ledger.associate_id, 500, "UPI", "asha@okaxis")

        stats = await CommissionService(db).get_associate_stats(ledger.associate_id)

        assert stats.total_earned == Decimal("5000.00")
        assert stats.total_withdrawn == Decimal("1000.00")
        assert stats.pending_withdrawal == Decimal("500.00")
        assert stats.available_balance == Decimal("3500.00")

    async def test_balance_is_per_associate(self, db, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.other_associate_id, 10000)
        await CommissionService(db).generate_commission_from_payment(payment_id)

        stats = await CommissionService(db).get_associate_stats(ledger.associate_id)

        assert stats.total_earned == Decimal("0.00")


class TestListings:

    async def test_list_associate_commissions(self, db, ledger, add_payment):
        service = CommissionService(db)
        for amount in (10000, 20000):
            payment_id = await add_payment(ledger.project_id, ledger.associate_id, amount)
            await service.generate_commission_from_payment(payment_id)
        other_payment = await add_payment(ledger.project_id, ledger.other_associate_id, 5000)
        await service.generate_commission_from_payment(other_payment)

        commissions = await service.list_associate_commissions(ledger.associate_id)

        assert len(commissions) == 2
        assert all(c.associate_id == ledger.associate_id for c in commissions)
        assert commissions[0].earned_date >= commissions[1].earned_date

    async def test_dashboard_totals(self, db, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 100000)
        await CommissionService(db).generate_commission_from_payment(payment_id)
        withdrawals = WithdrawalService(db)
        done = await withdrawals.request_withdrawal(ledger.associate_id, 300, "UPI", "asha@okaxis")
        await withdrawals.process_withdrawal(done.id, ledger.admin_id, "COMPLETED")
        await withdrawals.request_withdrawal(ledger.associate_id, 200, "CHEQUE", "Asha Verma")

        stats = await CommissionService(db).get_dashboard_stats()

        assert stats == {
            "total_commissions": 1,
            "total_commission_amount": Decimal("2000.00"),
            "pending_withdrawals": 1,
            "pending_withdrawal_amount": Decimal("200.00"),
            "completed_withdrawals": 1,
            "completed_withdrawal_amount": Decimal("300.00"),
        }
