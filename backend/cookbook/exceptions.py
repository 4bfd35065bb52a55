"""
Cookbook Backend — Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for the recipe API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right HTTP status.
Who:   Raised by services and route helpers; caught by global handlers.

Exception Hierarchy:
    CookbookError (base)          → 500 Internal Server Error
    ├── ValidationError           → 400 Bad Request (client can fix)
    ├── NotFoundError             → 404 Not Found
    └── FileStorageError          → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class CookbookError(Exception):
    """
    Base exception for all Cookbook application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional structured detail (returned as `details` for 4xx,
                  logged only for 5xx)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CookbookError):
    """
    Raised when client input fails validation.

    When:    Non-numeric recipe id, malformed or invalid recipe payload,
             image of the wrong type or too large.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid recipe data",
            "details": {
                "field": "recipe",
                "errors": [
                    {"field": "category", "message": "Input should be 'breakfast', ...",
                     "type": "literal_error"}
                ]
            }
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if errors is not None:
            ctx["errors"] = errors
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = errors or []


class NotFoundError(CookbookError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PUT/DELETE /api/recipes/{id} with an unknown id,
             GET /uploads/{name} for a missing file.
    HTTP:    404 Not Found

    The store itself signals absence with None/False; the service layer
    converts that into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(CookbookError):
    """
    Raised when file system operations fail.

    When:    Uploads directory not writable, disk full, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
