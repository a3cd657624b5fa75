"""用户默认配置的存储。"""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "bv_downloader"
CONFIG_FILENAME = "config.json"


@dataclass(slots=True)
class DownloaderConfig:
    """下载默认值；只保存偏好，不保存任何运行状态。"""

    download_dir: Optional[str] = None
    cookie: Optional[str] = None
    timeout: float = 10.0
    quality: int = 80
    page_delay: float = 1.0
    item_delay: float = 1.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DownloaderConfig":
        return cls(
            download_dir=data.get("download_dir") or None,
            cookie=data.get("cookie") or None,
            timeout=float(data.get("timeout", 10.0) or 10.0),
            quality=int(data.get("quality", 80) or 80),
            page_delay=float(data.get("page_delay", 1.0) or 0.0),
            item_delay=float(data.get("item_delay", 1.0) or 0.0),
        )


def _resolve_config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def default_config_path() -> Path:
    return _resolve_config_dir() / CONFIG_FILENAME


class ConfigStore:
    """读写默认配置文件；文件缺失或损坏时使用默认值。"""

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self.storage_path = storage_path or default_config_path()

    def load(self) -> DownloaderConfig:
        if not self.storage_path.exists():
            return DownloaderConfig()
        try:
            raw = json.loads(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return DownloaderConfig()
        if not isinstance(raw, dict):
            return DownloaderConfig()
        try:
            return DownloaderConfig.from_dict(raw)
        except (TypeError, ValueError):
            return DownloaderConfig()

    def save(self, config: DownloaderConfig) -> None:
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self.storage_path.write_text(
            json.dumps(config.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
        )
