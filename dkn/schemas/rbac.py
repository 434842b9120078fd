"""
Role catalog projection served to the presentation layer.
"""

from typing import Dict, List

from pydantic import BaseModel


class RoleInfo(BaseModel):
    """Display data for one role. Not used for enforcement."""
    
    name: str
    description: str
    permissions: List[str]


class RoleCatalogResponse(BaseModel):
    roles: Dict[str, RoleInfo]
