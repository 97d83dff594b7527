from app.models.user import User, UserType
from app.models.project import Project, ProjectStatus
from app.models.payment import Payment, PaymentStatus, PaymentType
from app.models.commission import Commission, CommissionStatus
from app.models.withdrawal import Withdrawal, WithdrawalMethod

__all__ = [
    "User", "UserType",
    "Project", "ProjectStatus",
    "Payment", "PaymentStatus", "PaymentType",
    "Commission", "CommissionStatus",
    "Withdrawal", "WithdrawalMethod",
]
