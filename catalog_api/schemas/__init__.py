from catalog_api.schemas.base import (
    MessageResponse,
    ErrorResponse,
    ValidationErrorResponse,
)
from catalog_api.schemas.category import (
    CategoryResponse,
    CategoryWithProductsResponse,
    CategoryEnvelope,
    CategoryWithProductsEnvelope,
)
from catalog_api.schemas.product import ProductResponse

__all__ = [
    "MessageResponse",
    "ErrorResponse",
    "ValidationErrorResponse",
    "CategoryResponse",
    "CategoryWithProductsResponse",
    "CategoryEnvelope",
    "CategoryWithProductsEnvelope",
    "ProductResponse",
]
