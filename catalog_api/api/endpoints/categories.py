from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from catalog_api.api.advanced_results import advanced_results, get_advanced_results
from catalog_api.api.deps import authorize, get_identity, protect
from catalog_api.api.schemas import CATEGORY_PRODUCTS, CategoryIn, CategoryUpdate, changes, ok
from catalog_api.core.errors import NotFoundError
from catalog_api.core.store.base import ResourceStore


def create_router(categories: ResourceStore) -> APIRouter:
    router = APIRouter(prefix="/api/v1/categories", tags=["categories"])
    staff = [Depends(protect), Depends(authorize("seller", "admin"))]

    async def _get_or_404(category_id: str) -> Dict[str, Any]:
        doc = await categories.get(category_id)
        if doc is None:
            raise NotFoundError(f"Category not found with id {category_id}")
        return doc

    @router.get("", dependencies=[Depends(advanced_results(categories, CATEGORY_PRODUCTS))])
    async def list_categories(request: Request) -> Dict[str, Any]:
        return get_advanced_results(request).to_dict()

    @router.post("", status_code=201, dependencies=staff)
    async def create_category(body: CategoryIn, request: Request) -> Dict[str, Any]:
        doc = changes(body)
        doc["created_by"] = get_identity(request).id
        return ok(await categories.create(doc))

    @router.get("/{category_id}", dependencies=staff)
    async def get_category(category_id: str) -> Dict[str, Any]:
        return ok(await _get_or_404(category_id))

    @router.put("/{category_id}", dependencies=staff)
    async def update_category(category_id: str, body: CategoryUpdate) -> Dict[str, Any]:
        doc = await categories.update(category_id, changes(body))
        if doc is None:
            raise NotFoundError(f"Category not found with id {category_id}")
        return ok(doc)

    @router.delete("/{category_id}", dependencies=staff)
    async def delete_category(category_id: str) -> Dict[str, Any]:
        if not await categories.delete(category_id):
            raise NotFoundError(f"Category not found with id {category_id}")
        return ok({})

    return router
