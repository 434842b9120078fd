"""
Category and tag lookup schemas.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str]
    
    class Config:
        from_attributes = True


class TagCreate(BaseModel):
    label: Optional[str] = Field(None, max_length=255)
    tag_type: Optional[str] = Field(None, max_length=100)


class TagResponse(BaseModel):
    id: uuid.UUID
    label: str
    tag_type: Optional[str]
    
    class Config:
        from_attributes = True
