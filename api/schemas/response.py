"""
API 응답 스키마 정의

응답 봉투(envelope)와 헬스체크 응답 Pydantic 모델입니다.
봉투의 JSON 필드명은 호출자가 지정할 수 있습니다.
"""

from typing import Any

from pydantic import BaseModel, Field, model_serializer
from pydantic_core import to_jsonable_python

DEFAULT_RETURN_CODE_NAME = "returnCode"
DEFAULT_MESSAGE_NAME = "message"
DEFAULT_DATA_NAME = "data"
DEFAULT_L10N_KEY_NAME = "l10nKey"


class ApiResponse(BaseModel):
    """응답 봉투

    기본 필드명은 ``returnCode``, ``message``, ``data``, ``l10nKey`` 이며
    ``*_name`` 필드로 바꿀 수 있습니다. null 값도 항상 키를 포함해 직렬화합니다.

    Example:
        ```python
        ApiResponse(return_code=0, message="OK", data=document).to_dict()
        # {"returnCode": 0, "message": "OK", "data": {...}, "l10nKey": None}

        ApiResponse(return_code=0, return_code_name="code").to_dict()
        # {"code": 0, "message": None, "data": None, "l10nKey": None}
        ```
    """

    return_code: int = Field(default=0, description="결과 코드 (0: 성공)")
    message: str | None = Field(default=None, description="결과 메시지")
    data: Any = Field(default=None, description="응답 데이터")
    l10n_key: str | None = Field(default=None, description="다국어 메시지 키")

    # 직렬화 필드명
    return_code_name: str = Field(default=DEFAULT_RETURN_CODE_NAME, min_length=1)
    message_name: str = Field(default=DEFAULT_MESSAGE_NAME, min_length=1)
    data_name: str = Field(default=DEFAULT_DATA_NAME, min_length=1)
    l10n_key_name: str = Field(default=DEFAULT_L10N_KEY_NAME, min_length=1)

    @model_serializer(mode="plain")
    def _serialize(self) -> dict[str, Any]:
        return {
            self.return_code_name: self.return_code,
            self.message_name: self.message,
            self.data_name: to_jsonable_python(self.data, by_alias=True),
            self.l10n_key_name: self.l10n_key,
        }

    def to_dict(self) -> dict[str, Any]:
        """설정된 필드명으로 JSON 호환 dict 생성"""
        return self.model_dump()

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ApiResponse":
        """기본 필드명(또는 ``code``)으로 된 응답 파싱"""
        return_code = payload.get(DEFAULT_RETURN_CODE_NAME, payload.get("code", 0))
        return cls(
            return_code=return_code,
            message=payload.get(DEFAULT_MESSAGE_NAME),
            data=payload.get(DEFAULT_DATA_NAME),
            l10n_key=payload.get(DEFAULT_L10N_KEY_NAME),
        )


class ErrorResponse(BaseModel):
    """API 에러 응답 (인증 실패 등)"""

    error: str = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    details: dict[str, Any] | None = Field(
        default=None,
        description="상세 에러 정보",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "INVALID_API_KEY",
                "message": "Invalid API key",
            }
        }
    }


class HealthResponse(BaseModel):
    """헬스체크 응답

    GET /health 응답으로 반환됩니다.
    """

    status: str = Field(default="ok", description="서버 상태")
    version: str = Field(..., description="API 버전")
    uptime_seconds: int = Field(default=0, description="서버 가동 시간 (초)")

    # 설정 저장소 상태
    config: str = Field(default="unknown", description="설정 저장소 상태")
    config_version: int = Field(default=0, description="설정 스냅샷 교체 횟수")
    ip_count: int = Field(default=0, description="등록된 IP 수")
    watching: bool = Field(default=False, description="설정 파일 자동 리로드 여부")

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ok",
                "version": "1.0.0",
                "uptime_seconds": 3600,
                "config": "loaded",
                "config_version": 3,
                "ip_count": 2,
                "watching": True,
            }
        }
    }
