"""
Account model: one row per authenticated identity.
"""

import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from dkn.kernel.identity.principal import AccountStatus, Principal
from dkn.kernel.models.base import Base, TimestampMixin
from dkn.kernel.permissions.catalog import Role


class Account(Base, TimestampMixin):
    """
    Local account record for an identity-provider user.

    The id is the provider's subject id. Rows are created on first
    authentication and are never deleted.
    """
    
    __tablename__ = "accounts"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    username: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    role_code: Mapped[str] = mapped_column(
        String(50),
        default=Role.CONSULTANT.value,
        nullable=False,
    )
    region_code: Mapped[str] = mapped_column(
        String(50),
        default="GLOBAL",
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=AccountStatus.ACTIVE.value,
        nullable=False,
    )
    
    def to_principal(self) -> Principal:
        return Principal(
            id=self.id,
            role_code=self.role_code,
            region_code=self.region_code,
            status=self.status,
        )
    
    def __repr__(self) -> str:
        return f"<Account {self.email} role={self.role_code}>"
