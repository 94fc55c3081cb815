"""
설정 API 라우터

IP 설정 문서 조회, 저장, 수동 리로드를 제공합니다.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from config.config_manager import ConfigDocument
from lib.errors import ConfigSaveError

from ..dependencies import get_config_store, verify_api_key
from ..schemas.response import ApiResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/config",
    tags=["Config"],
)

RETURN_CODE_OK = 0


def _envelope(
    http_status: int,
    return_code: int,
    message: str,
    data: Any = None,
    l10n_key: str | None = None,
) -> JSONResponse:
    body = ApiResponse(
        return_code=return_code,
        message=message,
        data=data,
        l10n_key=l10n_key,
    )
    return JSONResponse(status_code=http_status, content=body.to_dict())


def _store_unavailable() -> JSONResponse:
    return _envelope(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Config store not initialized",
        l10n_key="ServerConfigUnavailable",
    )


@router.get(
    "",
    summary="설정 조회",
    description="현재 IP 설정 문서를 응답 봉투로 감싸 반환합니다.",
)
async def get_config(
    config_store: Any = Depends(get_config_store),
) -> JSONResponse:
    """설정 조회

    Returns:
        ``{"returnCode": 0, "message": "OK", "data": {"ipAddresses": [...]}, "l10nKey": null}``
    """
    if not config_store:
        return _store_unavailable()

    return _envelope(
        status.HTTP_200_OK,
        RETURN_CODE_OK,
        "OK",
        data=config_store.get_config(),
    )


@router.post(
    "",
    summary="설정 저장",
    description="IP 설정 문서를 디스크에 원자적으로 저장하고 메모리에 반영합니다.",
    dependencies=[Depends(verify_api_key)],
    responses={
        401: {"model": ErrorResponse, "description": "인증 실패"},
        500: {"description": "저장 실패 (기존 설정 유지)"},
    },
)
async def save_config(
    document: ConfigDocument,
    config_store: Any = Depends(get_config_store),
) -> JSONResponse:
    """설정 저장

    Args:
        document: 저장할 설정 문서 (``{"ipAddresses": [...]}``)

    Returns:
        저장된 설정 문서
    """
    if not config_store:
        return _store_unavailable()

    try:
        await config_store.save_config(document)
    except ConfigSaveError as e:
        logger.error(f"[ConfigAPI] 설정 저장 실패: {e}")
        return _envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to save config",
            l10n_key="ServerConfigSaveFailed",
        )

    return _envelope(
        status.HTTP_200_OK,
        RETURN_CODE_OK,
        "Config saved",
        data=config_store.get_config(),
    )


@router.post(
    "/reload",
    summary="설정 수동 리로드",
    description="설정 파일을 다시 읽습니다. 파일 감시가 비활성화된 경우에 사용합니다.",
    dependencies=[Depends(verify_api_key)],
    responses={401: {"model": ErrorResponse, "description": "인증 실패"}},
)
async def reload_config(
    config_store: Any = Depends(get_config_store),
) -> JSONResponse:
    """설정 수동 리로드

    Returns:
        리로드 후 설정 문서
    """
    if not config_store:
        return _store_unavailable()

    changed = await config_store.reload()

    return _envelope(
        status.HTTP_200_OK,
        RETURN_CODE_OK,
        "Config reloaded" if changed else "Config unchanged",
        data=config_store.get_config(),
    )
