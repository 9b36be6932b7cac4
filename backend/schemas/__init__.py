"""
Backend Pydantic schemas for API request/response models.

All schemas are re-exported here for convenient imports:
    from backend.schemas import PassSearchResponse, ErrorResponse
"""

from backend.schemas.passes import (
    ErrorEnvelope,
    ErrorResponse,
    PassResponse,
    PassSearchResponse,
)

__all__ = [
    "ErrorEnvelope",
    "ErrorResponse",
    "PassResponse",
    "PassSearchResponse",
]
