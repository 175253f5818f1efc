from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from catalog_api.api.advanced_results import advanced_results, get_advanced_results
from catalog_api.api.deps import authorize, get_identity, protect
from catalog_api.api.schemas import PRODUCT_CATEGORY, ProductIn, ProductUpdate, changes, ok
from catalog_api.core.errors import NotFoundError
from catalog_api.core.store.base import ResourceStore


def create_router(products: ResourceStore, categories: ResourceStore) -> APIRouter:
    router = APIRouter(tags=["products"])
    staff = [Depends(protect), Depends(authorize("seller", "admin"))]

    async def _require_category(category_id: Optional[str]) -> None:
        if category_id is not None and await categories.get(category_id) is None:
            raise NotFoundError(f"Category not found with id {category_id}")

    @router.get(
        "/api/v1/products",
        dependencies=[Depends(advanced_results(products, PRODUCT_CATEGORY))],
    )
    async def list_products(request: Request) -> Dict[str, Any]:
        return get_advanced_results(request).to_dict()

    @router.get(
        "/api/v1/categories/{category_id}/products",
        dependencies=[
            Depends(advanced_results(products, PRODUCT_CATEGORY, path_filters={"category_id": "category"}))
        ],
    )
    async def list_category_products(request: Request) -> Dict[str, Any]:
        return get_advanced_results(request).to_dict()

    @router.post("/api/v1/products", status_code=201, dependencies=staff)
    async def create_product(body: ProductIn, request: Request) -> Dict[str, Any]:
        doc = changes(body)
        await _require_category(doc.get("category"))
        doc["created_by"] = get_identity(request).id
        return ok(await products.create(doc))

    @router.post("/api/v1/categories/{category_id}/products", status_code=201, dependencies=staff)
    async def create_category_product(category_id: str, body: ProductIn, request: Request) -> Dict[str, Any]:
        await _require_category(category_id)
        doc = changes(body)
        doc["category"] = category_id
        doc["created_by"] = get_identity(request).id
        return ok(await products.create(doc))

    @router.get("/api/v1/products/{product_id}")
    async def get_product(product_id: str) -> Dict[str, Any]:
        doc = await products.get(product_id, populate=PRODUCT_CATEGORY)
        if doc is None:
            raise NotFoundError(f"Product not found with id {product_id}")
        return ok(doc)

    @router.put("/api/v1/products/{product_id}", dependencies=staff)
    async def update_product(product_id: str, body: ProductUpdate) -> Dict[str, Any]:
        updates = changes(body)
        await _require_category(updates.get("category"))
        doc = await products.update(product_id, updates)
        if doc is None:
            raise NotFoundError(f"Product not found with id {product_id}")
        return ok(doc)

    @router.delete("/api/v1/products/{product_id}", dependencies=staff)
    async def delete_product(product_id: str) -> Dict[str, Any]:
        if not await products.delete(product_id):
            raise NotFoundError(f"Product not found with id {product_id}")
        return ok({})

    return router
