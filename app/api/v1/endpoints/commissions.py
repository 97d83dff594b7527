"""API endpoints for the associate commission & withdrawal ledger.

Associate routes act on the caller's own ledger; /admin routes and project
approval require an ADMIN. Ledger failures raised by the services are
rendered by the LedgerError handler registered in app.main.
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import DB, AdminUser, CurrentUser
from app.schemas.base import Envelope
from app.schemas.commission import (
    AssociateStatsResponse,
    CommissionDashboardResponse,
    CommissionResponse,
    ProjectCompletionProject,
    ProjectCompletionResponse,
)
from app.schemas.withdrawal import (
    AdminWithdrawalResponse,
    Pagination,
    WithdrawalCreate,
    WithdrawalListResponse,
    WithdrawalProcess,
    WithdrawalResponse,
)
from app.services.commission_service import CommissionService
from app.services.withdrawal_service import WithdrawalService

router = APIRouter()


# ==================== Associate: Commissions ====================

@router.get("", response_model=Envelope[List[CommissionResponse]])
async def get_my_commissions(
    db: DB,
    current_user: CurrentUser,
):
    """List the caller's commissions, most recently earned first."""
    commissions = await CommissionService(db).list_associate_commissions(current_user.id)
    return Envelope(
        message=f"Found {len(commissions)} commissions",
        data=[CommissionResponse.model_validate(c) for c in commissions],
    )


@router.get("/stats", response_model=Envelope[AssociateStatsResponse])
async def get_my_stats(
    db: DB,
    current_user: CurrentUser,
):
    """Balance snapshot: earned, withdrawn, pending and available."""
    stats = await CommissionService(db).get_associate_stats(current_user.id)
    return Envelope(data=AssociateStatsResponse(**stats.to_dict()))


# ==================== Associate: Withdrawals ====================

@router.get("/withdrawals", response_model=Envelope[List[WithdrawalResponse]])
async def get_my_withdrawals(
    db: DB,
    current_user: CurrentUser,
):
    """The caller's withdrawal history, newest first."""
    withdrawals = await WithdrawalService(db).list_associate_withdrawals(current_user.id)
    return Envelope(
        message=f"Found {len(withdrawals)} withdrawal requests",
        data=[WithdrawalResponse.model_validate(w) for w in withdrawals],
    )


@router.post(
    "/withdrawals",
    response_model=Envelope[WithdrawalResponse],
    status_code=status.HTTP_201_CREATED,
)
async def request_withdrawal(
    withdrawal_in: WithdrawalCreate,
    db: DB,
    current_user: CurrentUser,
):
    """Request a payout of earned commission."""
    withdrawal = await WithdrawalService(db).request_withdrawal(
        associate_id=current_user.id,
        amount=withdrawal_in.amount,
        method=withdrawal_in.method,
        account_details=withdrawal_in.account_details,
        notes=withdrawal_in.notes,
    )
    return Envelope(
        message="Withdrawal request submitted successfully. It will be processed within 2-3 business days.",
        data=WithdrawalResponse.model_validate(withdrawal),
    )


# ==================== Commission Generation ====================

@router.post("/generate/{payment_id}", response_model=Envelope[CommissionResponse])
async def generate_commission(
    payment_id: UUID,
    db: DB,
    current_user: CurrentUser,
):
    """Generate the commission for a received payment (once per payment)."""
    commission = await CommissionService(db).generate_commission_from_payment(
        payment_id,
        requested_by=current_user,
    )
    return Envelope(
        message="Commission generated successfully",
        data=CommissionResponse.model_validate(commission),
    )


@router.put("/approve-project/{project_id}", response_model=Envelope[ProjectCompletionResponse])
async def approve_project(
    project_id: UUID,
    db: DB,
    admin: AdminUser,
):
    """Complete a project and generate commissions for its received payments."""
    return await approve_project_completion(db, project_id, admin.id)


async def approve_project_completion(db: AsyncSession, project_id: UUID, admin_id: UUID) -> Envelope[ProjectCompletionResponse]:
    """Shared by this router and the project completion route."""
    project, commissions = await CommissionService(db).approve_project_completion(project_id, admin_id)
    return Envelope(
        message=f"Project approved and {len(commissions)} commissions generated",
        data=ProjectCompletionResponse(
            project=ProjectCompletionProject.model_validate(project),
            commissions=[CommissionResponse.model_validate(c) for c in commissions],
        ),
    )


# ==================== Admin ====================

@router.get("/admin/dashboard", response_model=Envelope[CommissionDashboardResponse])
async def get_dashboard_stats(
    db: DB,
    admin: AdminUser,
):
    """Ledger-wide commission and withdrawal totals."""
    stats = await CommissionService(db).get_dashboard_stats()
    return Envelope(data=CommissionDashboardResponse(**stats))


@router.get("/admin/withdrawals", response_model=Envelope[WithdrawalListResponse])
async def get_all_withdrawals(
    db: DB,
    admin: AdminUser,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status_filter: Optional[str] = Query(None, alias="status", description="PENDING, COMPLETED, FAILED or CANCELLED"),
):
    """All withdrawal requests, newest first, optionally filtered by status."""
    result = await WithdrawalService(db).get_all_withdrawals(page=page, limit=limit, status=status_filter)
    return Envelope(
        data=WithdrawalListResponse(
            withdrawals=[AdminWithdrawalResponse.model_validate(w) for w in result["withdrawals"]],
            pagination=Pagination(**result["pagination"]),
        )
    )


@router.put("/admin/withdrawals/{withdrawal_id}", response_model=Envelope[WithdrawalResponse])
async def process_withdrawal(
    withdrawal_id: UUID,
    process_in: WithdrawalProcess,
    db: DB,
    admin: AdminUser,
):
    """Complete, fail or cancel a pending withdrawal."""
    withdrawal = await WithdrawalService(db).process_withdrawal(
        withdrawal_id,
        admin_id=admin.id,
        new_status=process_in.status,
        notes=process_in.notes,
    )
    return Envelope(
        message=f"Withdrawal {withdrawal.status.lower()} successfully",
        data=WithdrawalResponse.model_validate(withdrawal),
    )
