"""
API 미들웨어 모듈
"""

from .auth import APIKeyAuth, get_api_key_auth

__all__ = ["APIKeyAuth", "get_api_key_auth"]
