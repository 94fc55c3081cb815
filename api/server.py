"""
FastAPI 앱 정의 및 라우터 통합

IP 설정 API 서버의 메인 모듈입니다.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.config_manager import ConfigStore

from .dependencies import get_settings
from .routes import config_router, health_router, ips_router
from .schemas.response import ApiResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """앱 라이프사이클 관리

    시작 시:
        - ConfigStore 생성 (주입된 인스턴스가 없을 때)
        - 설정 파일 감시 시작

    종료 시:
        - 직접 만든 ConfigStore 종료 (감시 중지, 리로드 태스크 취소)
    """
    settings = get_settings()
    owned_store: ConfigStore | None = None

    if getattr(app.state, "config_store", None) is None:
        config_store = ConfigStore(settings.config_file_path, **settings.store_options())
        app.state.config_store = config_store
        owned_store = config_store

        await config_store.start()
        logger.info(
            f"[Server] ConfigStore 초기화 완료: {config_store.config_path} "
            f"(auto-reload={'on' if config_store.watching else 'off'})"
        )

    yield

    if owned_store is not None:
        await owned_store.close()
        app.state.config_store = None

    logger.info("[Server] 서버 종료")


def create_app(
    title: str = "IP Config API",
    version: str = "1.0.0",
    debug: bool = False,
    config_store: ConfigStore | None = None,
) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        title: API 제목
        version: API 버전
        debug: 디버그 모드
        config_store: 외부에서 관리하는 ConfigStore (없으면 lifespan에서 생성)

    Returns:
        FastAPI 앱 인스턴스
    """
    settings = get_settings()

    app = FastAPI(
        title=title,
        version=version,
        description="""
# IP Config API

클라이언트 IP 조회와 IP 설정 문서 관리 API입니다.

## 주요 기능

- **클라이언트 IP 조회**: GET /ips
- **설정 조회**: GET /api/v1/config
- **설정 저장**: POST /api/v1/config
- **설정 수동 리로드**: POST /api/v1/config/reload

## 인증

설정 저장/리로드 요청에는 `X-API-Key` 헤더가 필요합니다.
        """,
        debug=debug or settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.config_store = config_store

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health_router)  # /health
    app.include_router(ips_router)  # /ips
    app.include_router(config_router)  # /api/v1/config

    # 요청 검증 실패도 응답 봉투로 반환
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(f"[Server] 잘못된 요청: {request.method} {request.url.path}")
        body = ApiResponse(
            return_code=422,
            message="Invalid request",
            data=jsonable_encoder(exc.errors()),
            l10n_key="ServerInvalidRequest",
        )
        return JSONResponse(
            status_code=422,
            content=body.to_dict(),
        )

    # 글로벌 예외 핸들러
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """글로벌 예외 핸들러"""
        logger.exception(f"[Server] 처리되지 않은 예외: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "INTERNAL_ERROR",
                "message": "Internal server error",
                "details": str(exc) if settings.debug else None,
            },
        )

    return app


# 기본 앱 인스턴스
app = create_app()


# 직접 실행 시
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
