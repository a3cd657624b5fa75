"""测试用的内存假实现。"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from bv_downloader.bili_client import MetadataFetchError
from bv_downloader.downloader import TransferError
from bv_downloader.models import CollectionInfo, Episode, FavoritesList, PageInfo, VideoMetadata


def make_video(bvid: str, title: str, duration: int = 600, pages: int = 1, cid: int = 1000) -> VideoMetadata:
    page_infos = tuple(PageInfo(page=n, cid=cid + n - 1, title=f"{title} 第{n}集") for n in range(1, pages + 1))
    return VideoMetadata(bvid=bvid, title=title, duration=duration, cid=cid, pages=page_infos, owner="测试UP")


def make_multi_part(video: VideoMetadata) -> CollectionInfo:
    return CollectionInfo(
        title=video.title,
        episodes=tuple(Episode(bvid=video.bvid, title=p.title, page=p.page) for p in video.pages),
        multi_part=True,
    )


class FakeClient:
    def __init__(
        self,
        videos: Dict[str, VideoMetadata],
        collections: Optional[Dict[str, CollectionInfo]] = None,
        favorites: Optional[FavoritesList] = None,
    ) -> None:
        self.videos = videos
        self.collections = collections or {}
        self.favorites = favorites
        self.metadata_calls: List[str] = []
        self.stream_calls: List[Tuple[str, int]] = []

    def fetch_video_metadata(self, bvid: str) -> VideoMetadata:
        self.metadata_calls.append(bvid)
        if bvid not in self.videos:
            raise MetadataFetchError(f"获取视频信息失败({bvid})")
        return self.videos[bvid]

    def resolve_collection(self, bvid: str) -> Optional[CollectionInfo]:
        if bvid not in self.videos and bvid not in self.collections:
            raise MetadataFetchError(f"获取视频信息失败({bvid})")
        return self.collections.get(bvid)

    def resolve_stream_url(self, bvid: str, cid: int) -> str:
        self.stream_calls.append((bvid, cid))
        return f"https://upos.example.com/{bvid}/{cid}.mp4"

    def fetch_favorites(self, mid, fid, kind=None) -> FavoritesList:
        assert self.favorites is not None
        return self.favorites


class FakeDownloader:
    def __init__(self, fail_urls: Tuple[str, ...] = ()) -> None:
        self.fail_urls = fail_urls
        self.calls: List[Tuple[str, Path]] = []

    def download(self, stream_url: str, destination: Path) -> Path:
        self.calls.append((stream_url, destination))
        if stream_url in self.fail_urls:
            raise TransferError("连接被重置")
        destination.write_bytes(b"video")
        return destination


class ScriptedConfirm:
    """按顺序返回预设回答，并记录被问到的问题。"""

    def __init__(self, *answers: bool) -> None:
        self.answers = list(answers)
        self.questions: List[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else False
