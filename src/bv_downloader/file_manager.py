"""文件名清理与下载目录管理。"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Union

ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')
WHITESPACE = re.compile(r"\s+")
VIDEO_SUFFIX = ".mp4"

PathLike = Union[str, Path]


def sanitize_filename(title: str) -> str:
    """替换文件系统非法字符为`_`，合并连续空白并去除首尾空白。"""
    cleaned = ILLEGAL_CHARS.sub("_", title)
    return WHITESPACE.sub(" ", cleaned).strip()


def build_filename(title: str, page: int = 1, suffix: str = VIDEO_SUFFIX) -> str:
    name = sanitize_filename(title)
    if page > 1:
        name = f"{name}_P{page}"
    return f"{name}{suffix}"


class FileManager:
    """以下载根目录为基准解析相对路径。"""

    def __init__(self, base_dir: PathLike = ".") -> None:
        self.base_dir = Path(base_dir).expanduser().resolve()

    def resolve(self, path: PathLike) -> Path:
        return (self.base_dir / Path(path).expanduser()).resolve()

    def ensure_dir(self, path: PathLike = ".") -> Path:
        directory = self.resolve(path)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def exists(self, path: PathLike) -> bool:
        return self.resolve(path).exists()
