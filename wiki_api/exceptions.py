"""
Wiki API — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a message and optional context dict. Handlers
       registered in main.py turn them into JSON responses.
Who:   Raised by the article store and the request body parser.

Exception Hierarchy:
    WikiAPIError (base)
    ├── ValidationError   → 400 Bad Request (malformed body)
    └── DatabaseError     → echoed store error (status from settings)
        └── CastError     → title/content value with no string form
"""

from typing import Any, Dict, Optional


class WikiAPIError(Exception):
    """
    Base exception for all Wiki API errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WikiAPIError):
    """
    Raised when the request body cannot be read as a set of article fields.

    When:    Malformed JSON or a JSON body that is not an object.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Request body must be a JSON object",
            "details": {"field": "body"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class DatabaseError(WikiAPIError):
    """
    Raised when a document store operation fails.

    What:    Wraps the driver exception raised by a single store call.
    When:    Connection lost, missing table, constraint violation, etc.
    HTTP:    The error is echoed to the client verbatim (name + message) with
             settings.store_error_status_code, 200 by default.

    Attributes:
        operation: Store operation that failed (e.g. "replace_one")
        name:      Class name of the original driver exception
    """

    def __init__(
        self,
        operation: str,
        original: Exception,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["operation"] = operation
        super().__init__(message=str(original), context=ctx)
        self.operation = operation
        self.name = type(original).__name__
        self.original = original


class CastError(DatabaseError):
    """
    Raised when a title/content value cannot be cast to a string.

    What:    Objects and arrays sent as title or content.
    HTTP:    Echoed exactly like a failed store call, since the document
             store's schema cast is where such values are refused.
    """

    def __init__(
        self,
        operation: str,
        fields: Dict[str, str],
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["operation"] = operation
        ctx["fields"] = fields
        message = "; ".join(
            f'Cast to string failed for path "{field}": {reason}'
            for field, reason in fields.items()
        )
        WikiAPIError.__init__(self, message=message, context=ctx)
        self.operation = operation
        self.name = "CastError"
        self.original = None
