"""
Base Schema Classes for Pydantic Models

This module provides base classes that handle common patterns like ORM reads,
input normalization and the response envelope shared by every ledger endpoint.

RULE: All response schemas that use `from_attributes=True` MUST inherit from BaseResponseSchema.
"""

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict


T = TypeVar("T")


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class WithdrawalResponse(BaseResponseSchema):
            id: UUID
            amount: Decimal
    """
    model_config = ConfigDict(
        from_attributes=True,
        # Allow population by field name or alias
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Accepts both snake_case and the camelCase aliases sent by the CRM frontend.
    """
    model_config = ConfigDict(
        # Allow extra fields to be ignored (forward compatibility)
        extra='ignore',
        populate_by_name=True,
    )


class Envelope(BaseModel, Generic[T]):
    """
    {"success": true, "message": ..., "data": ...}

    Failures use the same shape with success=false (see LedgerError.to_dict).
    """
    success: bool = True
    message: Optional[str] = None
    data: T

