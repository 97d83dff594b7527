# Services module
from app.services.commission_service import CommissionService
from app.services.withdrawal_service import WithdrawalService

__all__ = [
    "CommissionService",
    "WithdrawalService",
]
