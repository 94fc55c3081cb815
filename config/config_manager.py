"""
설정 저장소 및 핫 리로드 시스템

디스크의 JSON 설정 파일(IP 주소 목록)을 메모리 스냅샷으로 캐시하고,
외부에서 파일이 수정되면 자동으로 다시 읽어 들입니다.

설계 원칙:
- 읽기는 Reader-Writer 락 아래에서 스냅샷의 깊은 복사본 반환 (I/O 없음)
- 저장은 임시 파일 작성 → fsync → 교체(rename) 순서로 원자적으로 수행
- 파일 변경 감지는 watchdog, 리로드는 단일 asyncio 태스크가 직렬 처리
- 락을 잡은 채로 디스크 I/O를 하지 않음
- 손상된 파일이 이미 유효한 메모리 스냅샷을 덮어쓰지 않음

사용법:
    ```python
    store = ConfigStore(resolve_config_path("/srv/app"))
    await store.start()

    document = store.get_config()
    await store.save_config(ConfigDocument(ip_addresses=["1.2.3.4"]))

    # 앱 종료 시
    await store.close()
    ```
"""

import asyncio
import inspect
import json
import logging
import os
import threading
import time
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from lib.errors import (
    ConfigLoadError,
    ConfigSaveError,
    ErrorCategory,
    ErrorClassifier,
)
from lib.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "Data"
CONFIG_FILE_NAME = "config.json"
TEMP_SUFFIX = ".tmp"

# 감시 대상 이벤트 (내용 변경, 생성, 이름 변경, 삭제)
WATCHED_EVENT_TYPES = frozenset(
    {
        EVENT_TYPE_MODIFIED,
        EVENT_TYPE_CREATED,
        EVENT_TYPE_MOVED,
        EVENT_TYPE_DELETED,
    }
)


def resolve_config_path(content_root: str | Path) -> Path:
    """콘텐츠 루트 기준 설정 파일 경로 (<root>/Data/config.json)"""
    return Path(content_root) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class ConfigDocument(BaseModel):
    """영속화되는 설정 문서

    JSON 형태: ``{"ipAddresses": ["1.2.3.4", ...]}``
    키가 없거나 null이면 빈 목록으로 취급합니다.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={"example": {"ipAddresses": ["1.2.3.4", "5.6.7.8"]}},
    )

    ip_addresses: list[str] = Field(
        default_factory=list,
        alias="ipAddresses",
        description="허용 IP 주소 목록 (순서 유지)",
    )

    @field_validator("ip_addresses", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_json(self) -> str:
        """운영자가 편집하기 쉬운 들여쓰기 JSON"""
        return json.dumps(self.model_dump(by_alias=True), indent=2, ensure_ascii=False)


def same_addresses(a: ConfigDocument, b: ConfigDocument) -> bool:
    """두 문서의 IP 목록이 순서까지 같은지 비교"""
    return list(a.ip_addresses) == list(b.ip_addresses)


class ConfigStore:
    """설정 저장소

    호스트(FastAPI lifespan)가 인스턴스 하나를 소유하고 주입합니다.
    스냅샷을 바꾸는 작업(저장, 리로드)은 ``_update_lock``으로 직렬화되고,
    스냅샷 교체 자체는 Reader-Writer 락의 쓰기 락 아래에서만 일어납니다.
    """

    def __init__(
        self,
        config_path: str | Path,
        *,
        reload_delay: float = 0.1,
        settle_delay: float = 0.05,
        retry_attempts: int = 5,
        retry_delay: float = 0.1,
        use_polling: bool = False,
        poll_interval: float = 1.0,
    ):
        """
        Args:
            config_path: 설정 파일 경로
            reload_delay: 변경 알림 후 다른 프로세스의 쓰기 완료를 기다리는 시간 (초)
            settle_delay: 자체 저장 후 감시 재개까지 대기 시간 (초)
            retry_attempts: 일시적 I/O 오류 시 최대 읽기 시도 횟수
            retry_delay: 재시도 간격 (초)
            use_polling: True면 네이티브 감시 대신 폴링 감시 사용
            poll_interval: 폴링 감시 주기 (초)
        """
        self._path = Path(config_path)
        self.reload_delay = reload_delay
        self.settle_delay = settle_delay
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self._rwlock = ReadWriteLock()
        self._update_lock = asyncio.Lock()
        self._callbacks: list[Callable] = []
        self._version = 0
        self._last_updated: datetime | None = None

        self._watcher: ConfigWatcher | None = None
        self._reload_task: asyncio.Task | None = None
        self._closed = False

        # 감시 시작 전에 기본 파일을 만들어 자체 생성 이벤트와 경쟁하지 않음
        self._ensure_default_file()
        self._snapshot = self._load_initial()

    # ------------------------------------------------------------------
    # 초기화
    # ------------------------------------------------------------------
    def _ensure_default_file(self) -> None:
        """설정 디렉토리와 기본 설정 파일 생성"""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._path.exists():
                return

            tmp_path = self._temp_path()
            self._write_temp(tmp_path, ConfigDocument().to_json())
            os.replace(tmp_path, self._path)
            logger.info(f"[ConfigStore] 기본 설정 파일 생성: {self._path}")
        except OSError as e:
            logger.warning(f"[ConfigStore] 기본 설정 파일 생성 실패: {self._path} - {e}")

    def _load_initial(self) -> ConfigDocument:
        """초기 스냅샷 로드

        실패해도 서비스 시작을 막지 않고 빈 설정으로 시작합니다.
        """
        for attempt in range(1, self.retry_attempts + 1):
            try:
                document = self._read_document()
                if document is None:
                    logger.warning(f"[ConfigStore] 설정 파일 없음, 빈 설정으로 시작: {self._path}")
                    return ConfigDocument()

                logger.info(
                    f"[ConfigStore] 설정 로드 완료: {self._path}, "
                    f"{len(document.ip_addresses)}개 IP"
                )
                return document

            except Exception as e:
                retryable = ErrorClassifier.classify(e) == ErrorCategory.RETRYABLE
                if retryable and attempt < self.retry_attempts:
                    time.sleep(self.retry_delay)
                    continue

                logger.warning(
                    f"[ConfigStore] 초기 설정 로드 실패, 빈 설정으로 시작: "
                    f"{self._path} - {ErrorClassifier.format_message(e)}"
                )
                return ConfigDocument()

        return ConfigDocument()

    # ------------------------------------------------------------------
    # 파일 I/O (락 밖에서만 호출)
    # ------------------------------------------------------------------
    def _temp_path(self) -> Path:
        return self._path.with_name(self._path.name + TEMP_SUFFIX)

    @staticmethod
    def _write_temp(tmp_path: Path, payload: str) -> None:
        """임시 파일 작성 후 저장 장치까지 동기화"""
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())

    @staticmethod
    def _discard_temp(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"[ConfigStore] 임시 파일 삭제 실패: {tmp_path} - {e}")

    def _read_document(self) -> ConfigDocument | None:
        """설정 파일 읽기 및 파싱

        Returns:
            ConfigDocument 또는 None (파일 없음)

        Raises:
            ConfigLoadError: 빈 파일(RETRYABLE) 또는 잘못된 내용(NON_RETRYABLE)
            OSError: 파일 잠김 등 I/O 오류
        """
        try:
            # 메모장 등이 붙이는 BOM 허용
            raw = self._path.read_text(encoding="utf-8-sig")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise ConfigLoadError(
                f"UTF-8이 아닌 설정 파일: {e}", ErrorCategory.NON_RETRYABLE
            ) from e

        # 쓰기 도중(truncate 직후)에 읽힌 경우
        if not raw.strip():
            raise ConfigLoadError(
                f"빈 설정 파일 (쓰기 진행 중일 수 있음): {self._path}",
                ErrorCategory.RETRYABLE,
            )

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(
                f"Invalid JSON: {e}", ErrorCategory.NON_RETRYABLE
            ) from e

        if data is None:
            return ConfigDocument()

        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"설정 최상위는 객체여야 함: {type(data).__name__}",
                ErrorCategory.NON_RETRYABLE,
            )

        try:
            return ConfigDocument.model_validate(data)
        except ValidationError as e:
            raise ConfigLoadError(
                f"설정 형식 오류: {e}", ErrorCategory.NON_RETRYABLE
            ) from e

    # ------------------------------------------------------------------
    # 공개 API
    # ------------------------------------------------------------------
    def get_config(self) -> ConfigDocument:
        """현재 설정 조회 (깊은 복사본)

        반환값을 수정해도 저장소 상태에는 영향이 없습니다.
        """
        with self._rwlock.read_locked():
            return self._snapshot.model_copy(deep=True)

    async def save_config(self, document: ConfigDocument) -> None:
        """설정 저장 (write-through, 원자적)

        Args:
            document: 저장할 설정 문서

        Raises:
            ConfigSaveError: 임시 파일 쓰기 또는 교체 실패.
                이 경우 디스크 파일과 메모리 스냅샷은 저장 전 상태 그대로입니다.
        """
        snapshot = document.model_copy(deep=True)
        payload = snapshot.to_json()
        tmp_path = self._temp_path()

        async with self._update_lock:
            try:
                await asyncio.to_thread(self._write_temp, tmp_path, payload)
            except OSError as e:
                self._discard_temp(tmp_path)
                raise ConfigSaveError(
                    f"임시 설정 파일 쓰기 실패: {tmp_path} - {e}",
                    path=str(self._path),
                ) from e

            # 자체 교체로 인한 불필요한 리로드 방지
            watcher = self._watcher
            if watcher:
                watcher.pause()

            try:
                await asyncio.to_thread(os.replace, tmp_path, self._path)
            except OSError as e:
                self._discard_temp(tmp_path)
                raise ConfigSaveError(
                    f"설정 파일 교체 실패: {self._path} - {e}",
                    path=str(self._path),
                ) from e
            finally:
                if watcher:
                    # 파일 시스템 이벤트 병합(coalescing) 흡수
                    await asyncio.sleep(self.settle_delay)
                    watcher.resume()

            self._publish(snapshot)

        logger.info(f"[ConfigStore] 설정 저장 완료: {self._path}")
        await self._run_callbacks(snapshot)

    async def reload(self) -> bool:
        """디스크에서 설정 다시 읽기

        - 일시적 I/O 오류: ``retry_delay`` 간격으로 ``retry_attempts``회까지 재시도,
          모두 실패하면 이번 리로드만 조용히 건너뜀
        - 잘못된 내용: 경고 로그, 기존 스냅샷 유지
        - 파일 삭제: 빈 설정으로 초기화

        Returns:
            스냅샷이 바뀌었으면 True
        """
        async with self._update_lock:
            document: ConfigDocument | None = None

            for attempt in range(1, self.retry_attempts + 1):
                try:
                    document = await asyncio.to_thread(self._read_document)
                    break
                except Exception as e:
                    if ErrorClassifier.classify(e) != ErrorCategory.RETRYABLE:
                        logger.warning(
                            f"[ConfigStore] 설정 로드 실패, 기존 설정 유지: "
                            f"{self._path} - {ErrorClassifier.format_message(e)}"
                        )
                        return False

                    if attempt >= self.retry_attempts:
                        logger.debug(
                            f"[ConfigStore] 재시도 {self.retry_attempts}회 초과, "
                            f"리로드 생략: {e}"
                        )
                        return False

                    await asyncio.sleep(self.retry_delay)

            deleted = document is None
            new_document = document if document is not None else ConfigDocument()

            current = self._snapshot
            if same_addresses(current, new_document):
                return False

            self._publish(new_document)

            if deleted:
                logger.info(f"[ConfigStore] 설정 파일 삭제됨, 빈 설정으로 초기화: {self._path}")
            else:
                logger.info(
                    f"[ConfigStore] 설정 리로드: {self._path}. "
                    f"New IPs: {new_document.ip_addresses}"
                )

        await self._run_callbacks(new_document)
        return True

    def _publish(self, document: ConfigDocument) -> None:
        """새 스냅샷 게시 (쓰기 락 아래에서 참조 교체만 수행)"""
        snapshot = document.model_copy(deep=True)
        with self._rwlock.write_locked():
            self._snapshot = snapshot
            self._version += 1
            self._last_updated = datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # 변경 감지
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """파일 감시 및 리로드 태스크 시작

        감시 초기화에 실패하면 경고만 남기고 자동 리로드 없이 동작합니다.
        """
        if self._closed:
            raise RuntimeError("ConfigStore is closed")
        if self._watcher is not None:
            return

        loop = asyncio.get_running_loop()
        events: asyncio.Queue[str] = asyncio.Queue()

        watcher = ConfigWatcher(
            self._path,
            loop,
            events.put_nowait,
            use_polling=self.use_polling,
            poll_interval=self.poll_interval,
        )
        if not watcher.start():
            logger.warning(
                "[ConfigStore] 파일 감시 비활성화 - 외부 수정은 재시작 또는 "
                "수동 리로드로만 반영됨"
            )
            return

        self._watcher = watcher
        self._reload_task = loop.create_task(
            self._reload_worker(events), name="config-reload"
        )

    async def _reload_worker(self, events: asyncio.Queue[str]) -> None:
        """변경 알림을 받아 리로드를 하나씩 수행"""
        while True:
            event_type = await events.get()

            # 알림이 쓰기 완료보다 먼저 올 수 있음
            await asyncio.sleep(self.reload_delay)
            coalesced = self._drain_events(events)
            logger.debug(
                f"[ConfigStore] 변경 감지: {event_type} (+{coalesced}건 병합)"
            )

            try:
                await self.reload()
            except Exception as e:
                logger.error(f"[ConfigStore] 리로드 실패: {e}")

    @staticmethod
    def _drain_events(events: asyncio.Queue[str]) -> int:
        count = 0
        while not events.empty():
            events.get_nowait()
            count += 1
        return count

    async def close(self) -> None:
        """감시 중지 및 리로드 태스크 취소 (진행 중인 재시도 대기도 중단)"""
        if self._closed:
            return
        self._closed = True

        if self._watcher:
            await asyncio.to_thread(self._watcher.stop)
            self._watcher = None

        if self._reload_task:
            self._reload_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._reload_task
            self._reload_task = None

        logger.info("[ConfigStore] 설정 저장소 종료")

    async def __aenter__(self) -> "ConfigStore":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # 콜백
    # ------------------------------------------------------------------
    def on_reload(self, callback: Callable) -> None:
        """설정 변경 콜백 등록 (새 문서의 복사본을 인자로 받음)"""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable) -> None:
        """설정 변경 콜백 제거"""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _run_callbacks(self, document: ConfigDocument) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(document.model_copy(deep=True))
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"[ConfigStore] 콜백 실행 실패: {e}")

    # ------------------------------------------------------------------
    # 상태
    # ------------------------------------------------------------------
    @property
    def config_path(self) -> Path:
        """설정 파일 경로"""
        return self._path

    @property
    def watching(self) -> bool:
        """자동 리로드 활성 여부"""
        return self._watcher is not None and self._watcher.running

    @property
    def version(self) -> int:
        """스냅샷 교체 횟수 (초기 로드는 0)"""
        return self._version

    @property
    def last_updated(self) -> datetime | None:
        """마지막 스냅샷 교체 시각 (UTC)"""
        return self._last_updated


class _ConfigFileEventHandler(FileSystemEventHandler):
    """설정 파일 이름에 해당하는 이벤트만 전달"""

    def __init__(self, watcher: "ConfigWatcher"):
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type not in WATCHED_EVENT_TYPES:
            return

        paths = [event.src_path, getattr(event, "dest_path", "")]
        if not any(self.watcher.matches(p) for p in paths if p):
            return

        self.watcher.dispatch(event.event_type)


class ConfigWatcher:
    """파일 시스템 감시

    watchdog으로 설정 파일이 있는 디렉토리를 (하위 폴더 제외) 감시하고,
    설정 파일 이름과 일치하는 이벤트를 이벤트 루프로 넘깁니다.
    네이티브 감시를 시작할 수 없으면 폴링 감시로 대체합니다.

    사용법:
        ```python
        watcher = ConfigWatcher(path, loop, queue.put_nowait)
        watcher.start()

        watcher.pause()   # 자체 저장 중
        watcher.resume()

        watcher.stop()
        ```
    """

    def __init__(
        self,
        config_path: Path,
        loop: asyncio.AbstractEventLoop,
        on_change: Callable[[str], None],
        use_polling: bool = False,
        poll_interval: float = 1.0,
    ):
        """
        Args:
            config_path: 감시할 설정 파일 경로
            loop: 알림을 전달할 이벤트 루프
            on_change: 이벤트 루프에서 호출될 콜백 (이벤트 타입 인자)
            use_polling: True면 바로 폴링 감시 사용
            poll_interval: 폴링 주기 (초)
        """
        self.config_path = Path(config_path)
        self.use_polling = use_polling
        self.poll_interval = poll_interval
        self._loop = loop
        self._on_change = on_change
        self._observer: Any = None
        self._paused = threading.Event()

    def start(self) -> bool:
        """파일 감시 시작

        Returns:
            감시가 시작되었으면 True
        """
        watch_dir = str(self.config_path.parent)
        handler = _ConfigFileEventHandler(self)

        factories: list[Callable[[], Any]] = []
        if not self.use_polling:
            factories.append(Observer)
        factories.append(lambda: PollingObserver(timeout=self.poll_interval))

        for factory in factories:
            observer = None
            try:
                observer = factory()
                observer.schedule(handler, watch_dir, recursive=False)
                observer.daemon = True
                observer.start()
            except Exception as e:
                logger.warning(
                    f"[ConfigWatcher] 파일 감시 초기화 실패 "
                    f"({type(observer).__name__ if observer else 'observer'}): {e}"
                )
                continue

            self._observer = observer
            logger.info(
                f"[ConfigWatcher] 파일 감시 시작: {self.config_path} "
                f"({type(observer).__name__})"
            )
            return True

        return False

    def stop(self) -> None:
        """파일 감시 중지"""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
            logger.info("[ConfigWatcher] 파일 감시 중지")

    def pause(self) -> None:
        """이벤트 전달 일시 중지"""
        self._paused.set()

    def resume(self) -> None:
        """이벤트 전달 재개"""
        self._paused.clear()

    @property
    def paused(self) -> bool:
        return self._paused.is_set()

    @property
    def running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def matches(self, path: str | bytes) -> bool:
        """이벤트 경로가 설정 파일인지 확인"""
        return Path(os.fsdecode(path)).name == self.config_path.name

    def dispatch(self, event_type: str) -> None:
        """감시 스레드에서 이벤트 루프로 알림 전달"""
        if self._paused.is_set():
            logger.debug(f"[ConfigWatcher] 자체 저장 중 이벤트 무시: {event_type}")
            return

        try:
            self._loop.call_soon_threadsafe(self._on_change, event_type)
        except RuntimeError:
            # 이벤트 루프가 이미 닫힘 (종료 중)
            logger.debug(f"[ConfigWatcher] 이벤트 루프 종료됨, 이벤트 무시: {event_type}")
