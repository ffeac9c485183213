from pydantic import BaseModel
from datetime import datetime
from catalog_api.schemas.base import CamelModel
from catalog_api.schemas.product import ProductResponse


class CategoryResponse(CamelModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class CategoryWithProductsResponse(CategoryResponse):
    products: list[ProductResponse] = []


class CategoryEnvelope(BaseModel):
    message: str
    category: CategoryResponse


class CategoryWithProductsEnvelope(BaseModel):
    message: str
    category: CategoryWithProductsResponse
