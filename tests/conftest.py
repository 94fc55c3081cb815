"""
Pytest 설정 및 공통 Fixture
"""

from pathlib import Path
from typing import Any

import pytest

from config.config_manager import ConfigStore, resolve_config_path
from tests.helpers import FAST_STORE_OPTIONS


@pytest.fixture
def content_root(tmp_path: Path) -> Path:
    """임시 콘텐츠 루트"""
    return tmp_path


@pytest.fixture
def config_path(content_root: Path) -> Path:
    """<content_root>/Data/config.json"""
    return resolve_config_path(content_root)


@pytest.fixture
def make_store(config_path: Path):
    """ConfigStore 팩토리 (start() 호출 전이므로 파일 감시 없음)"""

    def factory(**overrides: Any) -> ConfigStore:
        options = {**FAST_STORE_OPTIONS, **overrides}
        return ConfigStore(config_path, **options)

    return factory


@pytest.fixture
async def watched_store(config_path: Path):
    """파일 감시가 활성화된 ConfigStore (폴링 감시로 환경 차이 최소화)"""
    store = ConfigStore(config_path, **FAST_STORE_OPTIONS)
    await store.start()
    try:
        yield store
    finally:
        await store.close()
