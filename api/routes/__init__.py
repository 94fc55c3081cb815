"""
API 라우터 모듈
"""

from .config import router as config_router
from .health import router as health_router
from .ips import router as ips_router

__all__ = ["config_router", "health_router", "ips_router"]
