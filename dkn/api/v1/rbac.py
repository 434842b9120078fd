"""
Role catalog endpoint.
"""

from fastapi import APIRouter

from dkn.kernel.permissions.catalog import get_catalog
from dkn.schemas.rbac import RoleCatalogResponse

router = APIRouter()


@router.get("/roles", response_model=RoleCatalogResponse)
async def list_roles():
    """Display-only projection of the role catalog. Not used for enforcement."""
    return RoleCatalogResponse(roles=get_catalog().client_projection())
