"""
ip_config_api 공통 라이브러리

에러 분류, Reader-Writer 락, 클라이언트 IP 판별 유틸리티 제공.
"""

from .client_ip import resolve_client_ip
from .errors import (
    NON_RETRYABLE_PATTERNS,
    RETRYABLE_PATTERNS,
    ConfigLoadError,
    ConfigSaveError,
    ConfigStoreError,
    ErrorCategory,
    ErrorClassifier,
)
from .rwlock import ReadWriteLock

__all__ = [
    # Client IP
    "resolve_client_ip",
    # Errors
    "ConfigLoadError",
    "ConfigSaveError",
    "ConfigStoreError",
    "ErrorCategory",
    "ErrorClassifier",
    "NON_RETRYABLE_PATTERNS",
    "RETRYABLE_PATTERNS",
    # Lock
    "ReadWriteLock",
]
