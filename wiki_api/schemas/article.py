"""
Wiki API — Pydantic Request/Response Schemas
==============================================

What:  Pydantic models for the parts of the API contract that have a fixed shape.
How:   ArticleFields casts title/content from request bodies; the response
       models document error and health payloads in the OpenAPI schema.

Article documents themselves are schemaless and are returned as plain dicts.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ArticleFields(BaseModel):
    """
    The two article fields taken from a POST, PUT or PATCH body.

    Unknown keys are ignored. Numbers are cast to strings and booleans to
    "true"/"false"; objects and arrays fail validation.
    to_document() keeps only the fields the client actually sent, so an
    omitted field is absent from the stored document (not an empty string).
    """

    title: Optional[str] = Field(default=None, description="Article title")
    content: Optional[str] = Field(default=None, description="Article body")

    model_config = ConfigDict(extra="ignore")

    @field_validator("title", "content", mode="before")
    @classmethod
    def cast_to_string(cls, v: Any) -> Any:
        """Cast scalars the way a String schema field does."""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error format for rejected requests (validation and unexpected errors).

    Example:
        {
            "error": "validation_error",
            "message": "Request body is not valid JSON",
            "details": {"field": "body"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class StoreErrorResponse(BaseModel):
    """Echo of a failed document store call."""
    error: str = Field(default="store_error", description="Always 'store_error'")
    name: str = Field(description="Class name of the driver exception")
    message: str = Field(description="Driver exception message, verbatim")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
