"""
에러 분류 시스템

설정 파일 읽기/쓰기 실패를 재시도 가능 여부로 분류하여
ConfigStore 리로드 파이프라인의 재시도 로직에 활용.
"""

import errno
import json
from enum import Enum

from pydantic import ValidationError


class ErrorCategory(str, Enum):
    """에러 카테고리"""

    RETRYABLE = "retryable"  # 파일 잠김, 쓰기 도중 읽힘 등 일시적 장애
    NON_RETRYABLE = "non_retryable"  # 잘못된 JSON, 권한 없음, 디스크 가득 참
    UNKNOWN = "unknown"


# 재시도 가능 에러 패턴
RETRYABLE_PATTERNS = [
    "sharing violation",
    "being used by another process",
    "resource busy",
    "temporarily unavailable",
    "interrupted system call",
    "try again",
]

# 재시도 불가 에러 패턴
NON_RETRYABLE_PATTERNS = [
    "permission denied",
    "no space left",
    "read-only file system",
    "invalid json",
    "validation error",
]

# 일시적 I/O 장애로 보는 errno
RETRYABLE_ERRNOS = frozenset(
    {
        errno.EAGAIN,
        errno.EBUSY,
        errno.EINTR,
        errno.ETXTBSY,
    }
)


class ConfigStoreError(Exception):
    """설정 저장소 기본 에러"""

    def __init__(
        self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN
    ):
        super().__init__(message)
        self.category = category


class ConfigLoadError(ConfigStoreError):
    """설정 파일 읽기/파싱 실패"""


class ConfigSaveError(ConfigStoreError):
    """설정 파일 저장 실패 (원본 파일과 메모리 스냅샷은 변경되지 않음)"""

    def __init__(
        self,
        message: str,
        path: str = "",
        category: ErrorCategory = ErrorCategory.NON_RETRYABLE,
    ):
        super().__init__(message, category)
        self.path = path


class ErrorClassifier:
    """에러 분류기"""

    @classmethod
    def classify(cls, error: Exception) -> ErrorCategory:
        """에러를 분류하여 카테고리 반환

        Args:
            error: 분류할 예외 객체

        Returns:
            ErrorCategory: 재시도 가능 여부에 따른 카테고리
        """
        # 명시적으로 분류된 에러는 그대로 사용
        if isinstance(error, ConfigStoreError):
            return error.category

        # 파싱 실패는 내용 문제이므로 재시도해도 같은 결과
        if isinstance(error, (json.JSONDecodeError, ValidationError)):
            return ErrorCategory.NON_RETRYABLE

        if isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
            return ErrorCategory.NON_RETRYABLE

        if isinstance(error, OSError) and error.errno in RETRYABLE_ERRNOS:
            return ErrorCategory.RETRYABLE

        error_str = str(error).lower()

        # 패턴 매칭 (우선순위: NON_RETRYABLE > RETRYABLE)
        for pattern in NON_RETRYABLE_PATTERNS:
            if pattern in error_str:
                return ErrorCategory.NON_RETRYABLE

        for pattern in RETRYABLE_PATTERNS:
            if pattern in error_str:
                return ErrorCategory.RETRYABLE

        # 나머지 I/O 에러는 다른 프로세스의 쓰기와 겹친 것으로 간주
        if isinstance(error, OSError):
            return ErrorCategory.RETRYABLE

        if isinstance(error, (ValueError, TypeError, KeyError)):
            return ErrorCategory.NON_RETRYABLE

        return ErrorCategory.UNKNOWN

    @classmethod
    def format_message(
        cls, error: Exception, include_traceback: bool = False
    ) -> str:
        """에러 메시지 포맷팅

        Args:
            error: 포맷팅할 예외 객체
            include_traceback: 상세 스택 트레이스 포함 여부

        Returns:
            str: 카테고리 라벨이 포함된 에러 메시지
        """
        category = cls.classify(error)
        label = {
            ErrorCategory.RETRYABLE: "[재시도 가능]",
            ErrorCategory.NON_RETRYABLE: "[재시도 불가]",
            ErrorCategory.UNKNOWN: "[분류되지 않음]",
        }

        message = f"{label[category]} {type(error).__name__}: {str(error)}"

        if include_traceback:
            import traceback

            message += f"\n\n상세 정보:\n{traceback.format_exc()}"

        return message
