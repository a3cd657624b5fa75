"""下载流程编排：逐任务执行时长检查、已存在检查与下载，并汇总结果。"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Tuple, Union

from . import console
from .bili_client import MetadataFetchError, StreamResolutionError, select_cid
from .downloader import TransferError
from .file_manager import FileManager, build_filename
from .models import CollectionInfo, DownloadTask, FavKind, FavoritesList, RunSettings, VideoMetadata
from .resolver import Confirm, expand_collection, expand_favorites, video_task
from .utils import FavoritesTarget, format_duration

LONG_VIDEO_SECONDS = 3600
TASK_ERRORS = (MetadataFetchError, StreamResolutionError, TransferError)


class MetadataClient(Protocol):
    def fetch_video_metadata(self, bvid: str) -> VideoMetadata:
        ...

    def resolve_collection(self, bvid: str) -> Optional[CollectionInfo]:
        ...

    def resolve_stream_url(self, bvid: str, cid: int) -> str:
        ...

    def fetch_favorites(self, mid: int, fid: int, kind: FavKind = FavKind.OWNED) -> FavoritesList:
        ...


class Transfer(Protocol):
    def download(self, stream_url: str, destination: Path) -> Path:
        ...


class TaskOutcome(str, Enum):
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    DECLINED = "declined"
    PLANNED = "planned"


@dataclass(slots=True)
class BatchSummary:
    """批量下载的汇总统计。"""

    total: int = 0
    downloaded: int = 0
    skipped: int = 0
    declined: int = 0
    planned: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def record(self, outcome: TaskOutcome) -> None:
        if outcome is TaskOutcome.DOWNLOADED:
            self.downloaded += 1
        elif outcome is TaskOutcome.SKIPPED:
            self.skipped += 1
        elif outcome is TaskOutcome.DECLINED:
            self.declined += 1
        else:
            self.planned += 1


def needs_duration_prompt(task: DownloadTask, metadata: VideoMetadata, settings: RunSettings) -> bool:
    if settings.ignore_duration_check or metadata.duration <= LONG_VIDEO_SECONDS:
        return False
    if not task.requires_confirmation:
        return False
    return not settings.is_collection_confirmed(task.ref.collection_title)


def _same_collection(previous: DownloadTask, task: DownloadTask) -> bool:
    """同一收藏条目展开出的合集分集之间不再暂停。"""
    return (
        task.ref.collection_title is not None
        and task.ref.collection_title == previous.ref.collection_title
        and task.target_dir == previous.target_dir
    )


class DownloadEngine:
    """驱动元信息客户端与下载器完成一次运行。"""

    def __init__(
        self,
        client: MetadataClient,
        downloader: Transfer,
        settings: RunSettings,
        confirm: Confirm,
        *,
        item_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.downloader = downloader
        self.settings = settings
        self.confirm = confirm
        self.item_delay = item_delay
        self._sleep = sleep
        self.files = FileManager(settings.download_root)

    def process_task(self, task: DownloadTask) -> TaskOutcome:
        """执行单个任务；错误原样抛出，由调用方决定是否继续。"""
        ref = task.ref
        console.info("正在获取视频信息...")
        metadata = self.client.fetch_video_metadata(ref.bvid)
        cid = select_cid(metadata, ref.page)
        console.show_video(metadata)

        destination = self.files.resolve(task.target_dir) / build_filename(metadata.title, ref.page)
        if self.files.exists(destination):
            console.warning(f"文件已存在，跳过: {destination}")
            return TaskOutcome.SKIPPED

        if needs_duration_prompt(task, metadata, self.settings):
            question = f"视频「{metadata.title}」时长为 {format_duration(metadata.duration)}，超过1小时，是否继续下载?"
            if not self.confirm(question):
                console.warning(f"已跳过: {metadata.title}")
                return TaskOutcome.DECLINED

        if self.settings.dry_run:
            console.info(f"[dry-run] {metadata.title} -> {destination}")
            return TaskOutcome.PLANNED

        try:
            self.files.ensure_dir(task.target_dir)
        except OSError as exc:
            raise TransferError(f"创建目录失败({task.target_dir}): {exc}") from exc
        stream_url = self.client.resolve_stream_url(metadata.bvid, cid)
        console.info("开始下载...")
        self.downloader.download(stream_url, destination)
        console.success(f"下载完成! 文件已保存为: {destination}")
        return TaskOutcome.DOWNLOADED

    def run_batch(
        self,
        tasks: Iterable[DownloadTask],
        *,
        delay: float = 0.0,
        summary: Optional[BatchSummary] = None,
    ) -> BatchSummary:
        """逐个执行任务，单个任务失败只记录，不中断整批。"""
        if summary is None:
            summary = BatchSummary()
        task_list = list(tasks)
        count = len(task_list)
        previous: Optional[DownloadTask] = None
        for index, task in enumerate(task_list, start=1):
            if previous is not None and delay > 0 and not _same_collection(previous, task):
                self._sleep(delay)
            summary.total += 1
            console.info(f"\n[{index}/{count}] 下载: {task.label}")
            try:
                outcome = self.process_task(task)
            except TASK_ERRORS as exc:
                console.error(f"下载失败: {task.label}: {exc}")
                summary.failures.append((task.label, str(exc)))
            else:
                summary.record(outcome)
            previous = task
        return summary

    def download_video(self, bvid: str) -> TaskOutcome:
        return self.process_task(video_task(bvid, self.settings.download_root))

    def download_collection(self, bvid: str) -> Union[BatchSummary, TaskOutcome]:
        tasks = expand_collection(self.client, bvid, self.settings)
        if tasks is None:
            console.warning("未找到合集信息，将作为单个视频下载...")
            return self.download_video(bvid)
        summary = self.run_batch(tasks)
        report_summary(summary)
        return summary

    def download_favorites(self, target: FavoritesTarget) -> BatchSummary:
        favorites = self.client.fetch_favorites(target.mid, target.fid, target.kind)
        console.show_favorites(favorites)
        expansion = expand_favorites(self.client, favorites, self.settings, self.confirm)
        summary = BatchSummary(
            total=len(expansion.declined) + len(expansion.failures),
            declined=len(expansion.declined),
            failures=list(expansion.failures),
        )
        self.run_batch(expansion.tasks, delay=self.item_delay, summary=summary)
        report_summary(summary)
        return summary


def report_summary(summary: BatchSummary) -> None:
    console.success(
        f"\n全部处理完成：共 {summary.total} 项，下载 {summary.downloaded}，"
        f"跳过 {summary.skipped}，放弃 {summary.declined}，失败 {summary.failed}"
    )
    if summary.planned:
        console.info(f"dry-run 计划下载 {summary.planned} 项")
    for title, message in summary.failures:
        console.error(f"  - {title}: {message}")
