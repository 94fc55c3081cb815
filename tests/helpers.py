"""
테스트 공통 헬퍼
"""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Callable

# 테스트용 짧은 지연 (초)
FAST_STORE_OPTIONS: dict[str, Any] = {
    "reload_delay": 0.05,
    "settle_delay": 0.01,
    "retry_attempts": 5,
    "retry_delay": 0.01,
    "use_polling": True,
    "poll_interval": 0.05,
}


def write_config_file(path: Path, payload: Any) -> None:
    """저장소를 거치지 않고 설정 파일 직접 작성 (운영자 편집 흉내)"""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    path.write_text(text, encoding="utf-8")


async def wait_for(
    predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02
) -> bool:
    """조건이 참이 될 때까지 대기"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()
