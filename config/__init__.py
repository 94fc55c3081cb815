"""
설정 관리 모듈

ConfigStore, ConfigWatcher를 통해 IP 설정 문서를 관리하고 핫 리로드를 지원합니다.
"""

from .config_manager import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    ConfigDocument,
    ConfigStore,
    ConfigWatcher,
    resolve_config_path,
    same_addresses,
)

__all__ = [
    "CONFIG_DIR_NAME",
    "CONFIG_FILE_NAME",
    "ConfigDocument",
    "ConfigStore",
    "ConfigWatcher",
    "resolve_config_path",
    "same_addresses",
]
