"""
Knowledge item schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class KnowledgeItemCreate(BaseModel):
    """
    Knowledge item creation request.

    Title is checked by the service so a blank title is reported the same
    way from every entry point.
    """
    
    title: Optional[str] = Field(None, max_length=500)
    summary: Optional[str] = None
    item_type: Optional[str] = Field(None, max_length=100)
    content_uri: Optional[str] = Field(None, max_length=2048)
    status: Optional[str] = None
    region_code: Optional[str] = Field(None, max_length=50)
    category_ids: Optional[List[uuid.UUID]] = None
    tag_ids: Optional[List[uuid.UUID]] = None


class KnowledgeItemUpdate(BaseModel):
    """
    Knowledge item update request.

    Only fields present in the request body are applied; use
    ``model_dump(exclude_unset=True)``.
    """
    
    title: Optional[str] = Field(None, max_length=500)
    summary: Optional[str] = None
    item_type: Optional[str] = Field(None, max_length=100)
    content_uri: Optional[str] = Field(None, max_length=2048)
    status: Optional[str] = None
    region_code: Optional[str] = Field(None, max_length=50)
    category_ids: Optional[List[uuid.UUID]] = None
    tag_ids: Optional[List[uuid.UUID]] = None


class KnowledgeItemResponse(BaseModel):
    """Knowledge item response."""
    
    id: uuid.UUID
    title: str
    summary: Optional[str]
    item_type: Optional[str]
    content_uri: Optional[str]
    status: str
    region_code: str
    owner_id: uuid.UUID
    duplicate_cluster_id: Optional[uuid.UUID] = None
    category_ids: List[uuid.UUID] = []
    tag_ids: List[uuid.UUID] = []
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
