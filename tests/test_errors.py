"""
에러 분류 시스템 테스트

설정 파일 I/O 오류의 재시도 가능 여부 판단 테스트.
"""

import errno
import json

import pytest
from pydantic import ValidationError

from config.config_manager import ConfigDocument
from lib.errors import (
    NON_RETRYABLE_PATTERNS,
    RETRYABLE_PATTERNS,
    ConfigLoadError,
    ConfigSaveError,
    ConfigStoreError,
    ErrorCategory,
    ErrorClassifier,
)


class TestErrorClassifier:
    """에러 분류기 테스트"""

    def test_classify_retryable_busy(self):
        """재시도 가능: EBUSY"""
        error = OSError(errno.EBUSY, "Device or resource busy")
        assert ErrorClassifier.classify(error) == ErrorCategory.RETRYABLE

    def test_classify_retryable_sharing_violation(self):
        """재시도 가능: 다른 프로세스가 파일 사용 중"""
        error = OSError("The process cannot access the file because it is being used by another process")
        assert ErrorClassifier.classify(error) == ErrorCategory.RETRYABLE

    def test_classify_retryable_generic_oserror(self):
        """재시도 가능: 분류되지 않은 I/O 오류"""
        error = OSError("Input/output error")
        assert ErrorClassifier.classify(error) == ErrorCategory.RETRYABLE

    def test_classify_non_retryable_json(self):
        """재시도 불가: 잘못된 JSON"""
        with pytest.raises(json.JSONDecodeError) as exc_info:
            json.loads("{broken")
        assert ErrorClassifier.classify(exc_info.value) == ErrorCategory.NON_RETRYABLE

    def test_classify_non_retryable_validation(self):
        """재시도 불가: 형식 오류"""
        with pytest.raises(ValidationError) as exc_info:
            ConfigDocument.model_validate({"ipAddresses": "1.2.3.4"})
        assert ErrorClassifier.classify(exc_info.value) == ErrorCategory.NON_RETRYABLE

    def test_classify_non_retryable_permission(self):
        """재시도 불가: 권한 없음"""
        error = PermissionError(errno.EACCES, "Permission denied")
        assert ErrorClassifier.classify(error) == ErrorCategory.NON_RETRYABLE

    def test_classify_non_retryable_not_found(self):
        """재시도 불가: 파일 없음"""
        error = FileNotFoundError(errno.ENOENT, "No such file or directory")
        assert ErrorClassifier.classify(error) == ErrorCategory.NON_RETRYABLE

    def test_classify_non_retryable_disk_full(self):
        """재시도 불가: 디스크 가득 참"""
        error = OSError(errno.ENOSPC, "No space left on device")
        assert ErrorClassifier.classify(error) == ErrorCategory.NON_RETRYABLE

    def test_classify_explicit_category(self):
        """ConfigStoreError는 지정된 카테고리 사용"""
        error = ConfigLoadError("empty file", ErrorCategory.RETRYABLE)
        assert ErrorClassifier.classify(error) == ErrorCategory.RETRYABLE

    def test_classify_unknown(self):
        """분류되지 않음: 알 수 없는 에러"""
        error = Exception("Some random error")
        assert ErrorClassifier.classify(error) == ErrorCategory.UNKNOWN

    def test_classify_priority_non_retryable_over_retryable(self):
        """우선순위: NON_RETRYABLE > RETRYABLE"""
        error = OSError("permission denied while resource busy")
        assert ErrorClassifier.classify(error) == ErrorCategory.NON_RETRYABLE


class TestErrorPatterns:
    """에러 패턴 매칭 테스트"""

    @pytest.mark.parametrize("pattern", RETRYABLE_PATTERNS)
    def test_retryable_patterns(self, pattern: str):
        """재시도 가능 패턴 테스트"""
        error = Exception(f"Error: {pattern} occurred")
        assert ErrorClassifier.classify(error) == ErrorCategory.RETRYABLE

    @pytest.mark.parametrize("pattern", NON_RETRYABLE_PATTERNS)
    def test_non_retryable_patterns(self, pattern: str):
        """재시도 불가 패턴 테스트"""
        error = Exception(f"Error: {pattern} occurred")
        assert ErrorClassifier.classify(error) == ErrorCategory.NON_RETRYABLE


class TestErrorFormatMessage:
    """에러 메시지 포맷팅 테스트"""

    def test_format_message_retryable(self):
        """재시도 가능 에러 메시지 포맷팅"""
        message = ErrorClassifier.format_message(OSError("Resource busy"))

        assert "[재시도 가능]" in message
        assert "OSError" in message
        assert "Resource busy" in message

    def test_format_message_non_retryable(self):
        """재시도 불가 에러 메시지 포맷팅"""
        error = ConfigLoadError("Invalid JSON: Expecting value", ErrorCategory.NON_RETRYABLE)
        message = ErrorClassifier.format_message(error)

        assert "[재시도 불가]" in message
        assert "ConfigLoadError" in message

    def test_format_message_unknown(self):
        """분류되지 않은 에러 메시지 포맷팅"""
        message = ErrorClassifier.format_message(Exception("Random error"))

        assert "[분류되지 않음]" in message
        assert "Random error" in message

    def test_format_message_with_traceback(self):
        """Traceback 포함 메시지 포맷팅"""
        try:
            raise ValueError("Test error")
        except ValueError as e:
            message = ErrorClassifier.format_message(e, include_traceback=True)

            assert "[재시도 불가]" in message
            assert "상세 정보:" in message
            assert "Traceback" in message


class TestConfigStoreErrors:
    """커스텀 예외 테스트"""

    def test_default_category(self):
        """기본 카테고리 (UNKNOWN)"""
        assert ConfigStoreError("x").category == ErrorCategory.UNKNOWN

    def test_save_error(self):
        """저장 실패는 재시도 불가, 경로 포함"""
        error = ConfigSaveError("disk full", path="/srv/Data/config.json")

        assert isinstance(error, ConfigStoreError)
        assert str(error) == "disk full"
        assert error.path == "/srv/Data/config.json"
        assert error.category == ErrorCategory.NON_RETRYABLE
