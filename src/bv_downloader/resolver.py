"""将视频、合集与收藏夹展开为有序的下载任务列表。

展开阶段只调用元信息接口，不写任何文件；合集确认通过注入的
``confirm`` 回调完成，便于在测试或非交互模式下替换。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

from . import console
from .bili_client import MetadataFetchError
from .file_manager import sanitize_filename
from .models import CollectionInfo, DownloadTask, FavKind, FavoritesList, RunSettings, VideoRef

Confirm = Callable[[str], bool]


class CollectionSource(Protocol):
    def resolve_collection(self, bvid: str) -> Optional[CollectionInfo]:
        ...


@dataclass(slots=True)
class Expansion:
    """展开结果；`declined` 与 `failures` 记录在展开阶段就被跳过的条目。"""

    tasks: List[DownloadTask] = field(default_factory=list)
    declined: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)


def video_task(bvid: str, target_dir: Path, title: str = "") -> DownloadTask:
    return DownloadTask(ref=VideoRef(bvid=bvid), target_dir=target_dir, title=title)


def collection_tasks(
    collection: CollectionInfo,
    target_dir: Path,
    *,
    requires_confirmation: bool = True,
) -> List[DownloadTask]:
    """合集中每一集对应一个任务，顺序与合集一致，且共用同一目录。"""
    return [
        DownloadTask(
            ref=VideoRef(bvid=ep.bvid, page=ep.page or 1, collection_title=collection.title),
            target_dir=target_dir,
            requires_confirmation=requires_confirmation,
            title=ep.title,
        )
        for ep in collection.episodes
    ]


def expand_collection(
    client: CollectionSource, bvid: str, settings: RunSettings
) -> Optional[List[DownloadTask]]:
    """解析合集；不存在合集时返回 None，由调用方按单个视频处理。"""
    collection = client.resolve_collection(bvid)
    if collection is None:
        return None
    console.show_collection(collection)
    target_dir = settings.download_root / sanitize_filename(collection.title)
    return collection_tasks(collection, target_dir)


def expand_favorites(
    client: CollectionSource,
    favorites: FavoritesList,
    settings: RunSettings,
    confirm: Confirm,
) -> Expansion:
    fav_dir = settings.download_root / sanitize_filename(favorites.title)
    expansion = Expansion()
    declined_titles = set()

    if favorites.kind is FavKind.SUBSCRIBED:
        expansion.tasks = [video_task(item.bvid, fav_dir, item.title) for item in favorites.items]
        return expansion

    for item in favorites.items:
        try:
            collection = client.resolve_collection(item.bvid)
        except MetadataFetchError as exc:
            console.error(f"解析失败: {item.title}: {exc}")
            expansion.failures.append((item.title, str(exc)))
            continue

        if collection is None:
            expansion.tasks.append(video_task(item.bvid, fav_dir, item.title))
            continue

        if collection.title in declined_titles:
            expansion.declined.append(item.title)
            continue
        if not settings.is_collection_confirmed(collection.title):
            question = f"「{item.title}」属于合集「{collection.title}」，共 {len(collection.episodes)} 个视频，是否全部下载?"
            if not confirm(question):
                console.warning(f"已跳过合集: {collection.title}")
                declined_titles.add(collection.title)
                expansion.declined.append(item.title)
                continue
            settings.confirm_collection(collection.title)

        expansion.tasks.extend(
            collection_tasks(
                collection,
                fav_dir / sanitize_filename(item.title),
                requires_confirmation=False,
            )
        )
    return expansion
