"""
API v1 routes.
"""

from fastapi import APIRouter

from dkn.api.v1 import accounts, governance, knowledge, lookups, rbac

router = APIRouter()

router.include_router(knowledge.router, prefix="/knowledge", tags=["Knowledge"])
router.include_router(governance.router, prefix="/governance", tags=["Governance"])
router.include_router(lookups.router, prefix="/lookups", tags=["Lookups"])
router.include_router(accounts.router, prefix="/users", tags=["Users"])
router.include_router(rbac.router, prefix="/rbac", tags=["RBAC"])
