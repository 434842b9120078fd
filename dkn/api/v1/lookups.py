"""
Category and tag lookup endpoints.
"""

from typing import List

from fastapi import APIRouter, status

from dkn.api.deps import CurrentPrincipal, DbSession
from dkn.engines.content.lookup_service import LookupService
from dkn.schemas.lookups import CategoryCreate, CategoryResponse, TagCreate, TagResponse

router = APIRouter()


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: DbSession):
    return await LookupService(db).list_categories()


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(data: CategoryCreate, principal: CurrentPrincipal, db: DbSession):
    return await LookupService(db).create_category(principal, data.name, data.description)


@router.get("/tags", response_model=List[TagResponse])
async def list_tags(db: DbSession):
    return await LookupService(db).list_tags()


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(data: TagCreate, principal: CurrentPrincipal, db: DbSession):
    return await LookupService(db).create_tag(principal, data.label, data.tag_type)
