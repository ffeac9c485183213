"""Error taxonomy for the catalog pipelines.

Every error knows the HTTP status it maps to and the JSON envelope it is
rendered as, so the handlers in ``catalog_api.main`` stay one-liners.
"""
from typing import List, Dict


class CatalogError(Exception):
    """Base exception for all application errors."""
    status_code = 500

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(CatalogError):
    """Raised when a payload violates one or more field rules."""
    status_code = 400

    def __init__(self, errors: List[Dict[str, str]]):
        super().__init__("Validation failed")
        self.errors = errors

    def to_dict(self) -> dict:
        return {"errors": self.errors}


class NotFoundError(CatalogError):
    """Raised when an id does not resolve to a row."""
    status_code = 404


class UnsupportedMediaError(CatalogError):
    """Raised when an uploaded file has a MIME type outside the allow-list."""
    status_code = 400


class DependencyError(CatalogError):
    """Raised when the database, object storage or mail server fails."""
    status_code = 500
