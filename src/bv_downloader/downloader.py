"""视频流下载。"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import requests
from tqdm import tqdm

from .utils import build_session

CHUNK_SIZE = 64 * 1024


class TransferError(RuntimeError):
    """下载视频流或写入文件失败。"""


class VideoDownloader:
    """将视频流写入本地文件，并显示进度条。

    不做断点续传；失败时已写入的部分文件保留在磁盘上。
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        chunk_size: int = CHUNK_SIZE,
        show_progress: bool = True,
    ) -> None:
        self.session = session or build_session()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.show_progress = show_progress

    def download(self, stream_url: str, destination: Path) -> Path:
        destination = Path(destination)
        try:
            with self.session.get(
                stream_url,
                headers={"Range": "bytes=0-"},
                stream=True,
                timeout=self.timeout,
            ) as response:
                response.raise_for_status()
                length = response.headers.get("Content-Length")
                total = int(length) if length and length.isdigit() else None
                with destination.open("wb") as fh, tqdm(
                    desc=destination.name,
                    total=total,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    disable=not self.show_progress,
                ) as bar:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            bar.update(fh.write(chunk))
        except requests.RequestException as exc:
            raise TransferError(f"下载失败: {exc}") from exc
        except OSError as exc:
            raise TransferError(f"写入文件失败({destination}): {exc}") from exc
        return destination
