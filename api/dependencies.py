"""
FastAPI 의존성 주입 모듈

ConfigStore, Settings, Auth 등의 의존성을 관리합니다.
ConfigStore는 앱(app.state)이 소유하며 전역 싱글톤을 두지 않습니다.
"""

import os
from pathlib import Path
from typing import Any

from fastapi import Depends, Request

from config.config_manager import resolve_config_path

from .middleware.auth import APIKeyAuth, get_api_key_auth


# ============================================================================
# API Key 인증 의존성
# ============================================================================
async def verify_api_key(
    request: Request,
    auth: APIKeyAuth = Depends(get_api_key_auth),
) -> str:
    """API Key 검증 의존성

    Args:
        request: FastAPI Request 객체
        auth: APIKeyAuth 인스턴스

    Returns:
        검증된 API Key
    """
    return await auth(request)


# ============================================================================
# ConfigStore 의존성
# ============================================================================
def get_config_store(request: Request) -> Any:
    """ConfigStore 의존성

    Returns:
        앱에 연결된 ConfigStore 인스턴스 또는 None
    """
    return getattr(request.app.state, "config_store", None)


# ============================================================================
# 환경 설정 의존성
# ============================================================================
def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """앱 설정 클래스"""

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = self.env == "dev"

        # API 서버 설정
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = int(os.getenv("API_PORT", "8000"))

        # 설정 파일 위치 (<CONTENT_ROOT>/Data/config.json)
        self.content_root = os.getenv("CONTENT_ROOT", os.getcwd())

        # 설정 저장소 동작
        self.config_reload_delay = float(os.getenv("CONFIG_RELOAD_DELAY", "0.1"))
        self.config_settle_delay = float(os.getenv("CONFIG_SETTLE_DELAY", "0.05"))
        self.config_retry_attempts = int(os.getenv("CONFIG_RETRY_ATTEMPTS", "5"))
        self.config_retry_delay = float(os.getenv("CONFIG_RETRY_DELAY", "0.1"))
        self.config_watch_polling = _env_bool("CONFIG_WATCH_POLLING")
        self.config_poll_interval = float(os.getenv("CONFIG_POLL_INTERVAL", "1.0"))

    @property
    def config_file_path(self) -> Path:
        """설정 파일 경로"""
        return resolve_config_path(self.content_root)

    def store_options(self) -> dict[str, Any]:
        """ConfigStore 생성 옵션"""
        return {
            "reload_delay": self.config_reload_delay,
            "settle_delay": self.config_settle_delay,
            "retry_attempts": self.config_retry_attempts,
            "retry_delay": self.config_retry_delay,
            "use_polling": self.config_watch_polling,
            "poll_interval": self.config_poll_interval,
        }


_settings: Settings | None = None


def get_settings() -> Settings:
    """앱 설정 의존성 (싱글톤)

    Returns:
        Settings 인스턴스
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """설정 캐시 초기화 (환경변수 변경 후 다시 읽을 때)"""
    global _settings
    _settings = None
