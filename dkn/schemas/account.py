"""
Account schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class AccountResponse(BaseModel):
    """Account response."""
    
    id: uuid.UUID
    email: str
    username: Optional[str]
    role_code: str
    region_code: str
    status: str
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class CurrentAccountResponse(AccountResponse):
    """The caller's own account with the permissions of its role."""
    
    permissions: List[str] = []


class ProfileUpdate(BaseModel):
    """Profile update request. Blank fields are ignored."""
    
    username: Optional[str] = Field(None, max_length=255)
    region_code: Optional[str] = Field(None, max_length=50)


class RoleChangeRequest(BaseModel):
    """Role and/or status change request."""
    
    role_code: Optional[str] = None
    status: Optional[str] = None
