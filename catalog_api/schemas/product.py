from pydantic import Field
from typing import Optional
from datetime import datetime
from catalog_api.schemas.base import CamelModel


class ProductResponse(CamelModel):
    id: str
    name: str
    price: float
    product_image: Optional[str] = Field(None, description="Public URL returned by the object store")
    expiry_date: Optional[datetime] = None
    category_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
