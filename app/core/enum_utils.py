"""
Enum Utilities for VARCHAR-based Status Fields

CONVENTIONS:
━━━━━━━━━━━━
• Database: VARCHAR - NOT a native ENUM type
• SQLAlchemy: String(n) with Mapped[str]
• Pydantic / services: Python Enum or plain strings
• Case: All enum values stored in UPPERCASE, words joined with "_"

INPUT NORMALIZATION:
━━━━━━━━━━━━━━━━━━━━
Clients of the original CRM send display values ("Completed",
"Bank Transfer"). normalize_choice() maps those onto stored values
("COMPLETED", "BANK_TRANSFER") so both spellings are accepted.
"""

import re
from enum import Enum
from typing import Any, Optional, Type, TypeVar


T = TypeVar('T', bound=Enum)


def get_enum_value(value: Any) -> Optional[str]:
    """
    Safely get string value from an enum or string.

    Examples:
        >>> get_enum_value(WithdrawalMethod.UPI)
        'UPI'
        >>> get_enum_value("UPI")
        'UPI'
        >>> get_enum_value(None)
        None
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


def normalize_choice(value: Any) -> Optional[str]:
    """
    Normalize a display value to its stored UPPERCASE form.

    Examples:
        >>> normalize_choice("Bank Transfer")
        'BANK_TRANSFER'
        >>> normalize_choice("BankTransfer")
        'BANK_TRANSFER'
        >>> normalize_choice(" completed ")
        'COMPLETED'
        >>> normalize_choice("")
        None
    """
    raw = get_enum_value(value)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    raw = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", raw)
    return "_".join(raw.replace("-", " ").split()).upper()


def to_enum(value: Any, enum_class: Type[T]) -> Optional[T]:
    """
    Convert a (possibly display-cased) value to an enum instance.

    Returns None when the value is not a member.

    Examples:
        >>> to_enum("Cheque", WithdrawalMethod)
        WithdrawalMethod.CHEQUE
        >>> to_enum("Paypal", WithdrawalMethod)
        None
    """
    if value is None:
        return None
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(normalize_choice(value))
    except (ValueError, KeyError):
        return None
