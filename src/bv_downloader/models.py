"""数据模型定义。"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Set, Tuple


class FavKind(str, Enum):
    """收藏夹类型：自建或订阅。"""

    OWNED = "owned"
    SUBSCRIBED = "subscribed"


@dataclass(frozen=True, slots=True)
class VideoRef:
    """一个可下载单元：BV 号 + 分P 序号。"""

    bvid: str
    page: int = 1
    collection_title: Optional[str] = None


@dataclass(slots=True)
class PageInfo:
    page: int
    cid: int
    title: str


@dataclass(slots=True)
class VideoMetadata:
    """视频元信息。"""

    bvid: str
    title: str
    duration: int
    cid: int
    pages: Tuple[PageInfo, ...] = ()
    owner: str = ""

    def find_page(self, page: int) -> Optional[PageInfo]:
        return next((p for p in self.pages if p.page == page), None)


@dataclass(slots=True)
class Episode:
    """合集或分P视频中的一集。"""

    bvid: str
    title: str
    page: Optional[int] = None


@dataclass(slots=True)
class CollectionInfo:
    """分P视频或合集。"""

    title: str
    episodes: Tuple[Episode, ...]
    multi_part: bool = False


@dataclass(slots=True)
class FavoriteItem:
    bvid: str
    title: str


@dataclass(slots=True)
class FavoritesList:
    """收藏夹及其全部条目。"""

    title: str
    kind: FavKind
    items: Tuple[FavoriteItem, ...]


@dataclass(frozen=True, slots=True)
class DownloadTask:
    """展开后的单个下载任务。"""

    ref: VideoRef
    target_dir: Path
    requires_confirmation: bool = True
    title: str = ""

    @property
    def label(self) -> str:
        name = self.title or self.ref.bvid
        return name if self.ref.page <= 1 else f"{name} (P{self.ref.page})"


@dataclass(slots=True)
class RunSettings:
    """单次运行内的设置，进程退出即丢弃。

    合集确认按标题精确匹配，不同合集同名时会共享确认结果。
    """

    download_root: Path
    ignore_duration_check: bool = False
    confirmed_collection_titles: Set[str] = field(default_factory=set)
    dry_run: bool = False

    def is_collection_confirmed(self, title: Optional[str]) -> bool:
        return title is not None and title in self.confirmed_collection_titles

    def confirm_collection(self, title: str) -> None:
        self.confirmed_collection_titles.add(title)
