"""
models/enums.py — Status and method enumerations shared by models, schemas
and services.

Defined in one place so they can be imported without pulling in the full
models. Do not duplicate these as plain string constants anywhere else.
"""

from __future__ import annotations

import enum


class PaymentStatus(str, enum.Enum):
    UNPAID        = "UNPAID"
    PAID_REPORTED = "PAID_REPORTED"
    CONFIRMED     = "CONFIRMED"


class PaymentMethod(str, enum.Enum):
    BANK   = "BANK"
    PAYPAY = "PAYPAY"


class RSVPStatus(str, enum.Enum):
    GO    = "GO"
    NO    = "NO"
    LATE  = "LATE"
    EARLY = "EARLY"

    @property
    def is_attending(self) -> bool:
        """GO, LATE and EARLY all count as attending for billing purposes."""
        return self is not RSVPStatus.NO


class PracticeRSVPStatus(str, enum.Enum):
    GO = "GO"
    NO = "NO"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Ensure SQLAlchemy stores enum values (e.g., 'PAID_REPORTED'), not names."""
    return [member.value for member in enum_cls]
