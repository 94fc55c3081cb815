"""
API 응답 스키마 모듈
"""

from .response import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
]
