"""B站视频、合集与收藏夹API封装。"""
from __future__ import annotations

import math
import time
from typing import Callable, Dict, List, Optional

import requests

from . import console
from .models import CollectionInfo, Episode, FavKind, FavoriteItem, FavoritesList, PageInfo, VideoMetadata
from .utils import build_session

VIEW_ENDPOINT = "https://api.bilibili.com/x/web-interface/view"
PLAYURL_ENDPOINT = "https://api.bilibili.com/x/player/playurl"
FAV_LIST_ENDPOINT = "https://api.bilibili.com/x/v3/fav/resource/list"
FAV_COLLECTED_ENDPOINT = "https://api.bilibili.com/x/v3/fav/folder/collected/list"

FAV_PAGE_SIZE = 20
DEFAULT_QUALITY = 80


class BiliAPIError(RuntimeError):
    """表示B站API返回业务错误。"""

    def __init__(self, code: int, message: str, endpoint: str) -> None:
        super().__init__(f"API响应错误(code={code}, message={message}, endpoint={endpoint})")
        self.code = code
        self.message = message
        self.endpoint = endpoint


class BiliRequestError(RuntimeError):
    """表示网络请求异常。"""

    def __init__(self, reason: str, endpoint: str) -> None:
        super().__init__(f"请求{endpoint}失败: {reason}")
        self.reason = reason
        self.endpoint = endpoint


class MetadataFetchError(RuntimeError):
    """获取视频信息失败。"""


class StreamResolutionError(RuntimeError):
    """获取视频下载地址失败。"""


class CidNotFoundError(StreamResolutionError):
    """视频中不存在指定分P。"""


class FavoritesFetchError(RuntimeError):
    """获取收藏夹信息失败。"""


class BiliClient:
    """封装下载流程所需的只读API。"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        quality: int = DEFAULT_QUALITY,
        page_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or build_session()
        self.timeout = timeout
        self.quality = quality
        self.page_delay = page_delay
        self._sleep = sleep

    def _request(self, method: str, url: str, **kwargs) -> Dict:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise BiliRequestError(str(exc), url) from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise BiliRequestError("响应不是有效的JSON", url) from exc
        code = payload.get("code", 0)
        if code != 0:
            raise BiliAPIError(code, payload.get("message", "unknown"), url)
        return payload.get("data") or {}

    def _view(self, bvid: str) -> Dict:
        try:
            return self._request("GET", VIEW_ENDPOINT, params={"bvid": bvid})
        except (BiliAPIError, BiliRequestError) as exc:
            raise MetadataFetchError(f"获取视频信息失败({bvid}): {exc}") from exc

    def fetch_video_metadata(self, bvid: str) -> VideoMetadata:
        data = self._view(bvid)
        return _parse_metadata(bvid, data)

    def resolve_collection(self, bvid: str) -> Optional[CollectionInfo]:
        """分P视频优先于合集；两者皆非时返回 None。"""
        data = self._view(bvid)
        pages = data.get("pages") or []
        if len(pages) > 1:
            return CollectionInfo(
                title=data.get("title", ""),
                episodes=tuple(
                    Episode(bvid=data.get("bvid") or bvid, title=p.get("part", ""), page=p.get("page"))
                    for p in pages
                ),
                multi_part=True,
            )
        season = data.get("ugc_season")
        if season:
            episodes: List[Episode] = []
            for section in season.get("sections") or []:
                for ep in section.get("episodes") or []:
                    if ep.get("bvid"):
                        episodes.append(Episode(bvid=ep["bvid"], title=ep.get("title", "")))
            return CollectionInfo(title=season.get("title", ""), episodes=tuple(episodes))
        return None

    def resolve_stream_url(self, bvid: str, cid: int) -> str:
        try:
            data = self._request(
                "GET",
                PLAYURL_ENDPOINT,
                params={"bvid": bvid, "cid": cid, "qn": self.quality},
            )
        except (BiliAPIError, BiliRequestError) as exc:
            raise StreamResolutionError(f"获取视频下载地址失败: {exc}") from exc
        durl = data.get("durl") or []
        url = durl[0].get("url") if durl else None
        if not url:
            raise StreamResolutionError(f"获取视频下载地址失败: 接口未返回可用地址({bvid}, cid={cid})")
        return url

    def _folder_info(self, mid: int, fid: int, kind: FavKind) -> Dict:
        if kind is FavKind.SUBSCRIBED:
            data = self._request("GET", FAV_COLLECTED_ENDPOINT, params={"up_mid": mid, "platform": "web"})
            return next((item for item in data.get("list") or [] if str(item.get("id")) == str(fid)), {})
        data = self._request("GET", FAV_LIST_ENDPOINT, params=_list_params(fid, 1, 1))
        return data.get("info") or {}

    def fetch_favorites(self, mid: int, fid: int, kind: FavKind = FavKind.OWNED) -> FavoritesList:
        """按固定页大小分页抓取收藏夹全部条目，页与页之间暂停以避免限流。"""
        try:
            info = self._folder_info(mid, fid, kind)
        except (BiliAPIError, BiliRequestError) as exc:
            raise FavoritesFetchError(f"获取收藏夹信息失败: {exc}") from exc
        if not info:
            raise FavoritesFetchError("获取收藏夹信息失败: 未找到收藏夹信息")

        total = int(info.get("media_count") or 0)
        total_pages = math.ceil(total / FAV_PAGE_SIZE)
        console.info(f"收藏夹共有 {total} 个视频，开始获取所有视频信息...")

        items: List[FavoriteItem] = []
        for page in range(1, total_pages + 1):
            if page > 1:
                self._sleep(self.page_delay)
            console.info(f"正在获取第 {page}/{total_pages} 页...")
            try:
                data = self._request("GET", FAV_LIST_ENDPOINT, params=_list_params(fid, page, FAV_PAGE_SIZE))
            except (BiliAPIError, BiliRequestError) as exc:
                raise FavoritesFetchError(f"获取收藏夹第 {page}/{total_pages} 页失败: {exc}") from exc
            for media in data.get("medias") or []:
                bvid = (media.get("bvid") or media.get("bv_id") or "").strip()
                if bvid:
                    items.append(FavoriteItem(bvid=bvid, title=media.get("title", "").strip()))

        if not items:
            raise FavoritesFetchError("获取收藏夹信息失败: 收藏夹为空或无法访问")
        return FavoritesList(title=info.get("title", ""), kind=kind, items=tuple(items))


def _list_params(fid: int, page: int, page_size: int) -> Dict:
    return {
        "media_id": fid,
        "pn": page,
        "ps": page_size,
        "keyword": "",
        "order": "mtime",
        "type": 0,
        "tid": 0,
        "platform": "web",
    }


def _parse_metadata(bvid: str, data: Dict) -> VideoMetadata:
    pages = tuple(
        PageInfo(page=int(p.get("page", 0)), cid=int(p.get("cid", 0)), title=p.get("part", ""))
        for p in data.get("pages") or []
    )
    return VideoMetadata(
        bvid=data.get("bvid") or bvid,
        title=data.get("title", ""),
        duration=int(data.get("duration") or 0),
        cid=int(data.get("cid") or 0),
        pages=pages,
        owner=(data.get("owner") or {}).get("name", ""),
    )


def select_cid(metadata: VideoMetadata, page: int) -> int:
    """取出指定分P对应的 cid；第1P使用视频本身的 cid。"""
    cid = metadata.cid
    if page > 1:
        found = metadata.find_page(page)
        cid = found.cid if found else 0
    if not cid:
        raise CidNotFoundError(f"无法获取视频CID: {metadata.bvid} P{page}")
    return cid
