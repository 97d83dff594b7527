"""Pydantic schemas for withdrawal requests and processing."""
from datetime import datetime
from typing import Optional, List
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.base import BaseCreateSchema, BaseResponseSchema


# ==================== Input Schemas ====================

class WithdrawalCreate(BaseCreateSchema):
    """
    Withdrawal request from an associate.

    Fields are optional here so that missing values are reported by the
    ledger as MissingFields rather than as a schema error.
    """
    amount: Optional[Decimal] = None
    method: Optional[str] = Field(None, description="BANK_TRANSFER, UPI or CHEQUE")
    account_details: Optional[str] = Field(None, alias="accountDetails", max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)


class WithdrawalProcess(BaseCreateSchema):
    """Admin decision on a pending withdrawal."""
    status: Optional[str] = Field(None, description="COMPLETED, FAILED or CANCELLED")
    notes: Optional[str] = Field(None, max_length=2000)


# ==================== Response Schemas ====================

class WithdrawalUserSummary(BaseResponseSchema):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class WithdrawalResponse(BaseResponseSchema):
    """Response schema for Withdrawal."""
    id: UUID
    associate_id: UUID
    amount: Decimal
    method: str
    account_details: str
    status: str
    reference: str
    notes: Optional[str] = None
    processed_by: Optional[UUID] = None
    processed_date: Optional[datetime] = None
    created_at: datetime


class AdminWithdrawalResponse(WithdrawalResponse):
    """Withdrawal with associate and processor details for admins."""
    associate: Optional[WithdrawalUserSummary] = None
    processor: Optional[WithdrawalUserSummary] = None


class Pagination(BaseModel):
    current: int
    pages: int
    total: int


class WithdrawalListResponse(BaseModel):
    withdrawals: List[AdminWithdrawalResponse]
    pagination: Pagination
