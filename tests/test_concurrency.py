"""
Concurrent writers against the same ledger rows.

Each task runs in its own session (and connection), the way parallel API
requests do, and asyncio.gather interleaves them.
"""
import asyncio
from decimal import Decimal

from sqlalchemy import func, select

from app.models import Commission, Withdrawal
from app.services.commission_service import CommissionService
from app.services.ledger_errors import (
    AlreadyGeneratedError,
    AlreadyProcessedError,
    InsufficientBalanceError,
    ProjectAlreadyCompletedError,
)
from app.services.withdrawal_service import WithdrawalService


async def run_concurrently(session_factory, count, operation):
    """Run operation(session, i) in `count` sessions at once."""
    async def one(i):
        async with session_factory() as session:
            return await operation(session, i)

    return await asyncio.gather(*(one(i) for i in range(count)), return_exceptions=True)


def split(results, error_type):
    errors = [r for r in results if isinstance(r, error_type)]
    successes = [r for r in results if not isinstance(r, BaseException)]
    unexpected = [r for r in results if isinstance(r, BaseException) and not isinstance(r, error_type)]
    assert not unexpected, unexpected
    return successes, errors


class TestCommissionOnce:

    async def test_parallel_generation_writes_one_commission(self, session_factory, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 10000)

        results = await run_concurrently(
            session_factory, 6,
            lambda session, i: CommissionService(session).generate_commission_from_payment(payment_id),
        )

        successes, errors = split(results, AlreadyGeneratedError)
        assert len(successes) == 1
        assert len(errors) == 5
        async with session_factory() as session:
            count = (await session.execute(
                select(func.count(Commission.id)).where(Commission.payment_id == payment_id)
            )).scalar()
        assert count == 1

    async def test_parallel_project_approval(self, session_factory, ledger, add_payment):
        for amount in (10000, 20000, 30000):
            await add_payment(ledger.project_id, ledger.associate_id, amount)

        results = await run_concurrently(
            session_factory, 4,
            lambda session, i: CommissionService(session).approve_project_completion(
                ledger.project_id, ledger.admin_id
            ),
        )

        successes, errors = split(results, ProjectAlreadyCompletedError)
        assert len(successes) == 1
        assert len(errors) == 3
        project, commissions = successes[0]
        assert len(commissions) == 3
        async with session_factory() as session:
            total = (await session.execute(select(func.count(Commission.id)))).scalar()
        assert total == 3


class TestWithdrawalSerialized:

    async def test_two_requests_cannot_both_spend_the_balance(self, session_factory, ledger, add_payment):
        """Balance 5,000: of two 3,000 requests exactly one is accepted."""
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 250000)
        async with session_factory() as session:
            await CommissionService(session).generate_commission_from_payment(payment_id)

        results = await run_concurrently(
            session_factory, 2,
            lambda session, i: WithdrawalService(session).request_withdrawal(
                ledger.associate_id, 3000, "UPI", "asha@okaxis"
            ),
        )

        successes, errors = split(results, InsufficientBalanceError)
        assert len(successes) == 1
        assert len(errors) == 1

    async def test_many_requests_never_overdraw(self, session_factory, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 250000)
        async with session_factory() as session:
            await CommissionService(session).generate_commission_from_payment(payment_id)

        results = await run_concurrently(
            session_factory, 8,
            lambda session, i: WithdrawalService(session).request_withdrawal(
                ledger.associate_id, 1000, "UPI", "asha@okaxis"
            ),
        )

        successes, errors = split(results, InsufficientBalanceError)
        assert len(successes) == 5
        assert len(errors) == 3
        async with session_factory() as session:
            stats = await CommissionService(session).get_associate_stats(ledger.associate_id)
        assert stats.pending_withdrawal == Decimal("5000.00")
        assert stats.available_balance == Decimal("0.00")


class TestWithdrawalSingleTransition:

    async def test_one_admin_wins(self, session_factory, ledger, add_payment):
        payment_id = await add_payment(ledger.project_id, ledger.associate_id, 250000)
        async with session_factory() as session:
            await CommissionService(session).generate_commission_from_payment(payment_id)
            withdrawal = await WithdrawalService(session).request_withdrawal(
                ledger.associate_id, 1000, "UPI", "asha@okaxis"
            )
            withdrawal_id = withdrawal.id

        targets = ["COMPLETED", "FAILED", "CANCELLED", "COMPLETED", "CANCELLED"]
        results = await run_concurrently(
            session_factory, len(targets),
            lambda session, i: WithdrawalService(session).process_withdrawal(
                withdrawal_id, ledger.admin_id, targets[i]
            ),
        )

        successes, errors = split(results, AlreadyProcessedError)
        assert len(successes) == 1
        assert len(errors) == len(targets) - 1
        async with session_factory() as session:
            stored = await session.get(Withdrawal, withdrawal_id)
        assert stored.status == successes[0].status
