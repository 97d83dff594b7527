"""Pydantic schemas for the commission ledger."""
from datetime import datetime
from typing import Optional, List
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.schemas.base import BaseResponseSchema


# ==================== Commission Schemas ====================

class CommissionPaymentSummary(BaseResponseSchema):
    """Payment fields shown alongside a commission."""
    id: UUID
    customer_name: str
    amount: Decimal
    payment_type: str


class CommissionProjectSummary(BaseResponseSchema):
    """Project fields shown alongside a commission."""
    id: UUID
    name: str
    location: Optional[str] = None


class CommissionResponse(BaseResponseSchema):
    """Response schema for Commission."""
    id: UUID
    associate_id: UUID
    payment_id: UUID
    project_id: UUID
    sale_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: str
    earned_date: datetime
    created_at: datetime

    payment: Optional[CommissionPaymentSummary] = None
    project: Optional[CommissionProjectSummary] = None


# ==================== Balance & Reports ====================

class AssociateStatsResponse(BaseModel):
    """Balance snapshot of one associate."""
    total_commissions: int
    total_earned: Decimal
    total_withdrawn: Decimal
    pending_withdrawal: Decimal
    available_balance: Decimal
    avg_commission: Decimal


class CommissionDashboardResponse(BaseModel):
    """Ledger-wide totals for admins."""
    total_commissions: int
    total_commission_amount: Decimal
    pending_withdrawals: int
    pending_withdrawal_amount: Decimal
    completed_withdrawals: int
    completed_withdrawal_amount: Decimal


# ==================== Project Completion ====================

class ProjectCompletionProject(BaseResponseSchema):
    id: UUID
    name: str
    status: str
    commission_rate: Optional[Decimal] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None


class ProjectCompletionResponse(BaseModel):
    """Project after approval plus the commissions generated by it."""
    project: ProjectCompletionProject
    commissions: List[CommissionResponse]
