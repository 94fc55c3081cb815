"""
헬스체크 API 라우터

서버 상태, 설정 저장소 상태(자동 리로드 여부 포함)를 반환합니다.
"""

import time
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..dependencies import get_config_store
from ..schemas.response import HealthResponse

router = APIRouter(tags=["Health"])

# 서버 시작 시각
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="헬스체크",
    description="서버 상태 및 설정 저장소 상태를 반환합니다.",
)
async def health_check(
    request: Request,
    config_store: Any = Depends(get_config_store),
) -> HealthResponse:
    """서버 헬스체크

    설정 저장소가 자동 리로드 없이 동작 중이면 ``degraded`` 로 표시합니다.
    """
    uptime = int(time.time() - _start_time)

    if not config_store:
        return HealthResponse(
            status="degraded",
            version=request.app.version,
            uptime_seconds=uptime,
            config="unavailable",
        )

    watching = bool(config_store.watching)
    document = config_store.get_config()

    return HealthResponse(
        status="ok" if watching else "degraded",
        version=request.app.version,
        uptime_seconds=uptime,
        config="loaded",
        config_version=config_store.version,
        ip_count=len(document.ip_addresses),
        watching=watching,
    )


@router.get(
    "/health/live",
    summary="Liveness 체크",
    description="서버가 살아있는지 확인합니다. (Kubernetes liveness probe용)",
)
async def liveness() -> dict[str, str]:
    """Liveness 체크 (경량)"""
    return {"status": "ok"}


@router.get(
    "/health/ready",
    summary="Readiness 체크",
    description="설정 저장소가 준비되었는지 확인합니다. (Kubernetes readiness probe용)",
)
async def readiness(
    config_store: Any = Depends(get_config_store),
) -> dict[str, str]:
    """Readiness 체크

    설정 저장소가 연결되어 있으면 ready 반환
    """
    if config_store:
        return {"status": "ready"}
    return {"status": "not_ready", "error": "Config store not initialized"}
