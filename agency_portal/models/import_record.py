from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

"""Typed projections of valid rows (ClientRecord / EmployeeRecord).

Only rows that passed validation are projected, so the email and client_type
invariants hold for every instance built by the validator.
"""

__all__ = [
    "ImportType",
    "ClientType",
    "ClientRecord",
    "EmployeeRecord",
    "ImportRecord",
    "DEFAULT_HEALTH_SCORE",
    "DEFAULT_MRR",
    "DEFAULT_PACKAGE",
    "DEFAULT_ROLE",
]

DEFAULT_HEALTH_SCORE = 75
DEFAULT_MRR = 0.0
DEFAULT_PACKAGE = "Standard"
DEFAULT_ROLE = "employee"


class ImportType(Enum):
    """Import target selected by the user (drives rules and target table)."""
    CLIENTS = "clients"
    EMPLOYEES = "employees"


class ClientType(Enum):
    BRAND_OWNER = "brand_owner"
    WHOLESALER = "wholesaler"
    THIRD_PARTY_SELLER = "3p_seller"

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]


@dataclass(frozen=True)
class ClientRecord:
    company_name: str
    contact_name: str
    email: str
    client_type: str
    health_score: int = DEFAULT_HEALTH_SCORE
    mrr: float = DEFAULT_MRR
    package: str = DEFAULT_PACKAGE

    def to_row(self) -> dict[str, Any]:
        """Column -> value mapping written to the clients table."""
        return asdict(self)


@dataclass(frozen=True)
class EmployeeRecord:
    name: str
    email: str
    role: str = DEFAULT_ROLE

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


ImportRecord = ClientRecord | EmployeeRecord
