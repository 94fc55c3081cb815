"""
클라이언트 IP 조회 API 라우터

요청자의 IP를 JSON 문자열로 반환합니다. 상태를 갖지 않습니다.
"""

from fastapi import APIRouter, Request

from lib.client_ip import resolve_client_ip

router = APIRouter(tags=["IP"])


@router.get(
    "/ips",
    summary="클라이언트 IP 조회",
    description="X-Forwarded-For 첫 항목, 없으면 연결 원격 주소를 반환합니다.",
)
async def get_client_ip(request: Request) -> str:
    """클라이언트 IP 조회"""
    remote_host = request.client.host if request.client else None
    return resolve_client_ip(request.headers.get("X-Forwarded-For"), remote_host)
