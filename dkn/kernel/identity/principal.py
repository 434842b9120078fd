"""
The acting account, as consumed by access decisions.
"""

import uuid
from dataclasses import dataclass
from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


@dataclass(frozen=True)
class Principal:
    """Snapshot of an account taken when the request was authenticated."""

    id: uuid.UUID
    role_code: str
    region_code: str
    status: str = AccountStatus.ACTIVE.value

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE.value
