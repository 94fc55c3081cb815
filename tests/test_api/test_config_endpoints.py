"""
설정 API 엔드포인트 테스트

/api/v1/config API의 통합 테스트입니다.
"""

import json
import os
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from api.dependencies import reset_settings
from api.middleware.auth import APIKeyAuth, get_api_key_auth
from api.server import create_app
from tests.helpers import write_config_file

TEST_API_KEY = "test-api-key"


@pytest.fixture
def store(make_store):
    """감시 없이 쓰는 실제 ConfigStore"""
    return make_store()


@pytest.fixture
def app(store):
    """ConfigStore를 주입한 앱"""
    app = create_app(debug=True, config_store=store)
    app.dependency_overrides[get_api_key_auth] = lambda: APIKeyAuth(api_keys=[TEST_API_KEY])
    return app


@pytest.fixture
async def app_client(app):
    """테스트용 FastAPI 앱 클라이언트"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


class TestGetConfigEndpoint:
    """GET /api/v1/config 테스트"""

    @pytest.mark.asyncio
    async def test_get_default_config(self, app_client):
        """초기 상태는 빈 목록"""
        response = await app_client.get("/api/v1/config")

        assert response.status_code == 200
        assert response.json() == {
            "returnCode": 0,
            "message": "OK",
            "data": {"ipAddresses": []},
            "l10nKey": None,
        }

    @pytest.mark.asyncio
    async def test_get_reflects_file(self, config_path: Path, make_store):
        """파일 내용이 조회 결과에 반영"""
        write_config_file(config_path, {"ipAddresses": ["1.2.3.4"]})
        app = create_app(debug=True, config_store=make_store())

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/config")

        assert response.json()["data"] == {"ipAddresses": ["1.2.3.4"]}

    @pytest.mark.asyncio
    async def test_get_without_store(self):
        """저장소 없으면 503"""
        app = create_app(debug=True)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/config")

        assert response.status_code == 503
        assert response.json()["l10nKey"] == "ServerConfigUnavailable"


class TestSaveConfigEndpoint:
    """POST /api/v1/config 테스트"""

    @pytest.mark.asyncio
    async def test_save_config(self, app_client, store, config_path: Path):
        """저장 후 응답/메모리/디스크 모두 반영"""
        response = await app_client.post(
            "/api/v1/config",
            json={"ipAddresses": ["1.2.3.4", "5.6.7.8"]},
            headers={"X-API-Key": TEST_API_KEY},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["returnCode"] == 0
        assert data["data"] == {"ipAddresses": ["1.2.3.4", "5.6.7.8"]}
        assert store.get_config().ip_addresses == ["1.2.3.4", "5.6.7.8"]
        assert json.loads(config_path.read_text(encoding="utf-8")) == {
            "ipAddresses": ["1.2.3.4", "5.6.7.8"]
        }

        response = await app_client.get("/api/v1/config")
        assert response.json()["data"]["ipAddresses"] == ["1.2.3.4", "5.6.7.8"]

    @pytest.mark.asyncio
    async def test_save_null_addresses(self, app_client, store):
        """ipAddresses: null → 빈 목록으로 저장"""
        response = await app_client.post(
            "/api/v1/config",
            json={"ipAddresses": None},
            headers={"X-API-Key": TEST_API_KEY},
        )

        assert response.status_code == 200
        assert store.get_config().ip_addresses == []

    @pytest.mark.asyncio
    async def test_save_missing_api_key(self, app_client, store):
        """API Key 없으면 401, 저장 안 됨"""
        response = await app_client.post("/api/v1/config", json={"ipAddresses": ["1.1.1.1"]})

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "MISSING_API_KEY"
        assert store.get_config().ip_addresses == []

    @pytest.mark.asyncio
    async def test_save_invalid_api_key(self, app_client):
        """잘못된 API Key는 401"""
        response = await app_client.post(
            "/api/v1/config",
            json={"ipAddresses": ["1.1.1.1"]},
            headers={"X-API-Key": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "INVALID_API_KEY"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"ipAddresses": "1.1.1.1"}, ["x"]])
    async def test_save_invalid_body(self, app_client, store, payload):
        """형식이 잘못된 본문은 422 응답 봉투, 저장 안 됨"""
        response = await app_client.post(
            "/api/v1/config",
            json=payload,
            headers={"X-API-Key": TEST_API_KEY},
        )

        assert response.status_code == 422
        data = response.json()
        assert set(data) == {"returnCode", "message", "data", "l10nKey"}
        assert data["returnCode"] == 422
        assert data["l10nKey"] == "ServerInvalidRequest"
        assert isinstance(data["data"], list) and data["data"]
        assert store.get_config().ip_addresses == []

    @pytest.mark.asyncio
    async def test_save_failure_returns_500(
        self, app_client, store, config_path: Path, monkeypatch
    ):
        """디스크 쓰기 실패 시 500, 기존 설정 유지"""
        original_bytes = config_path.read_bytes()

        def failing_replace(src, dst):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(os, "replace", failing_replace)

        response = await app_client.post(
            "/api/v1/config",
            json={"ipAddresses": ["1.1.1.1"]},
            headers={"X-API-Key": TEST_API_KEY},
        )

        assert response.status_code == 500
        data = response.json()
        assert data["returnCode"] == 500
        assert data["l10nKey"] == "ServerConfigSaveFailed"
        assert data["data"] is None
        assert store.get_config().ip_addresses == []
        assert config_path.read_bytes() == original_bytes


class TestReloadConfigEndpoint:
    """POST /api/v1/config/reload 테스트"""

    @pytest.mark.asyncio
    async def test_reload_picks_up_external_change(self, app_client, config_path: Path):
        """외부 수정 후 수동 리로드"""
        write_config_file(config_path, {"ipAddresses": ["9.9.9.9"]})

        response = await app_client.post(
            "/api/v1/config/reload", headers={"X-API-Key": TEST_API_KEY}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Config reloaded"
        assert data["data"] == {"ipAddresses": ["9.9.9.9"]}

    @pytest.mark.asyncio
    async def test_reload_unchanged(self, app_client):
        """변경 없으면 unchanged"""
        response = await app_client.post(
            "/api/v1/config/reload", headers={"X-API-Key": TEST_API_KEY}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Config unchanged"

    @pytest.mark.asyncio
    async def test_reload_requires_api_key(self, app_client):
        """API Key 필요"""
        response = await app_client.post("/api/v1/config/reload")
        assert response.status_code == 401


class TestLifespan:
    """앱 라이프사이클 테스트"""

    @pytest.mark.asyncio
    async def test_lifespan_owns_store(self, tmp_path: Path, monkeypatch):
        """주입된 저장소가 없으면 lifespan이 생성/시작/종료"""
        monkeypatch.setenv("CONTENT_ROOT", str(tmp_path))
        monkeypatch.setenv("CONFIG_WATCH_POLLING", "true")
        monkeypatch.setenv("CONFIG_POLL_INTERVAL", "0.05")
        reset_settings()

        try:
            app = create_app(debug=True)

            async with app.router.lifespan_context(app):
                store = app.state.config_store
                assert store is not None
                assert store.watching is True
                assert (tmp_path / "Data" / "config.json").exists()

            assert app.state.config_store is None
            assert store.watching is False
        finally:
            reset_settings()

    @pytest.mark.asyncio
    async def test_lifespan_keeps_injected_store(self, store):
        """주입된 저장소는 lifespan이 닫지 않음"""
        app = create_app(debug=True, config_store=store)

        async with app.router.lifespan_context(app):
            assert app.state.config_store is store

        assert app.state.config_store is store
        assert store.get_config().ip_addresses == []
