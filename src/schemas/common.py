"""Common Pydantic schemas used across multiple modules.

Every endpoint answers with the same envelope::

    {"success": true, "data": {...}, "message": "..."}
    {"success": false, "error": {"code": "UNAUTHORIZED", "message": "..."}}

Field names are serialized in camelCase (``CamelModel``), while Python code
keeps snake_case attributes.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorBody(BaseModel):
    """Error details inside a failed envelope.

    Attributes:
        code: Machine-readable error code (e.g. ``VALIDATION_ERROR``).
        message: Human-readable description.
    """

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class ApiResponse(CamelModel, Generic[T]):
    """Response envelope shared by every endpoint.

    Attributes:
        success: Whether the request succeeded.
        data: Payload (omitted when there is none).
        error: Error details (failures only).
        message: Optional human-readable status message.
    """

    success: bool = Field(default=True)
    data: Optional[T] = None
    error: Optional[ErrorBody] = None
    message: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {"success": True, "data": None, "message": "Operation successful"}
        },
    )


class MessageResponse(ApiResponse[None]):
    """Envelope carrying only a status message (logout, resend, reset...)."""


class HealthResponse(BaseModel):
    """Health check response.

    Attributes:
        status: ``healthy`` or ``degraded``.
        version: API version.
        database: ``connected`` or ``disconnected``.
    """

    status: str = Field(..., description="Health status of the API")
    version: str = Field(..., description="API version")
    database: str = Field(..., description="Database connectivity")

    model_config = {
        "json_schema_extra": {
            "example": {"status": "healthy", "version": "1.0.0", "database": "connected"}
        }
    }
