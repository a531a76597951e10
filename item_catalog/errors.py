"""
Typed failures raised by the catalog core (image store and item repository).

The core never logs; callers translate these into responses. ``status_code``
is the HTTP status the web layer maps each failure to.
"""
from __future__ import annotations

from typing import Any, Optional


class CatalogError(Exception):
    code = "CATALOG_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationInputMissing(CatalogError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field_name: str):
        super().__init__(f"{field_name} is required", {"field": field_name})
        self.field_name = field_name


class CategoryNotFound(CatalogError):
    # strict mode only: an unseeded category is a server-side configuration problem
    code = "CATEGORY_NOT_FOUND"
    status_code = 500

    def __init__(self, label: str):
        super().__init__(f"category not found: {label}", {"category": label})
        self.label = label


class NotFound(CatalogError):
    code = "NOT_FOUND"
    status_code = 404


class ItemNotFound(NotFound):
    def __init__(self, item_id: int):
        super().__init__("item not found", {"item_id": item_id})
        self.item_id = item_id


class InvalidPath(CatalogError):
    code = "INVALID_PATH"
    status_code = 400


class InvalidExtension(CatalogError):
    code = "INVALID_EXTENSION"
    status_code = 400


class StorageError(CatalogError):
    code = "STORAGE_ERROR"
    status_code = 500

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}", {"operation": operation})
        self.operation = operation


class OperationCancelled(CatalogError):
    code = "CANCELLED"
    status_code = 503

    def __init__(self, operation: str):
        super().__init__(f"{operation} cancelled", {"operation": operation})
        self.operation = operation


# Name used by callers that think of missing input as plain validation.
ValidationError = ValidationInputMissing
