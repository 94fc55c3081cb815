"""
IP Config API 모듈

FastAPI 기반 HTTP API로 클라이언트 IP 조회와 IP 설정 문서 관리를 제공합니다.
"""

from .server import app, create_app

__all__ = ["app", "create_app"]
