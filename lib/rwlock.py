"""
Reader-Writer 락

동시 읽기는 무제한 허용하고, 쓰기는 읽기/다른 쓰기와 배타적으로 수행합니다.
대기 중인 쓰기가 있으면 새 읽기를 막아 쓰기 기아(starvation)를 방지합니다.

요청 스레드와 이벤트 루프 스레드가 함께 접근하므로 threading 기반입니다.

사용법:
    ```python
    lock = ReadWriteLock()

    with lock.read_locked():
        value = shared.copy()

    with lock.write_locked():
        shared = new_value
    ```
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """쓰기 우선 Reader-Writer 락"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a read lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a write lock")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        """읽기 락 컨텍스트"""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        """쓰기 락 컨텍스트"""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """현재 읽기 락 보유 수"""
        return self._readers

    @property
    def write_held(self) -> bool:
        """쓰기 락 보유 여부"""
        return self._writer
