from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from catalog_api.core.store.base import PopulateSpec

# categories -> their products (reverse reference)
CATEGORY_PRODUCTS = PopulateSpec(
    path="products",
    collection="products",
    local_field="id",
    foreign_field="category",
    many=True,
)

# product -> its category (forward reference)
PRODUCT_CATEGORY = PopulateSpec(
    path="category",
    collection="categories",
    local_field="category",
    foreign_field="id",
    many=False,
)


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: Optional[str] = None
    description: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    description: Optional[str] = None


def changes(model: BaseModel) -> Dict[str, Any]:
    """Fields the caller actually sent."""
    return model.model_dump(exclude_unset=True)


def ok(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}
