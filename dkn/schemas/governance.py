"""
Governance schemas: flags, duplicate clusters and audits.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class FlagCreate(BaseModel):
    """Flag creation request."""
    
    note: Optional[str] = None


class FlagResponse(BaseModel):
    """Flag response, with the flagged item's title and status."""
    
    id: uuid.UUID
    item_id: uuid.UUID
    user_id: uuid.UUID
    note: str
    status: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    item_title: Optional[str] = None
    item_status: Optional[str] = None
    
    class Config:
        from_attributes = True


class ClusterCreate(BaseModel):
    """Duplicate cluster creation request."""
    
    detection_method: Optional[str] = Field(None, max_length=100)


class ClusterLinkRequest(BaseModel):
    """Request to add an item to a duplicate cluster."""
    
    item_id: Optional[uuid.UUID] = None


class ClusterResponse(BaseModel):
    """Duplicate cluster response with member item ids."""
    
    id: uuid.UUID
    detection_method: Optional[str]
    created_at: datetime
    item_ids: List[uuid.UUID] = []
    
    class Config:
        from_attributes = True


class AuditCreate(BaseModel):
    """Governance audit creation request."""
    
    item_id: Optional[uuid.UUID] = None
    decision: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class AuditResponse(BaseModel):
    """Governance audit response."""
    
    id: uuid.UUID
    item_id: uuid.UUID
    reviewer_id: uuid.UUID
    decision: str
    notes: Optional[str]
    audit_date: datetime
    
    class Config:
        from_attributes = True
