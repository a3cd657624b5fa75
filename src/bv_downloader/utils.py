"""通用工具方法。"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Union
from urllib.parse import parse_qs, urlparse

import requests

from .models import FavKind

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/118.0 Safari/537.36"
    ),
    "Referer": "https://www.bilibili.com/",
}
BV_PATTERN = re.compile(r"BV[0-9A-Za-z]+")


class InvalidUrlError(ValueError):
    """无法识别的输入链接。"""


@dataclass(frozen=True, slots=True)
class VideoTarget:
    bvid: str


@dataclass(frozen=True, slots=True)
class FavoritesTarget:
    mid: int
    fid: int
    kind: FavKind = FavKind.OWNED


def extract_bvid(url: str) -> str:
    """从视频链接中提取 BV 号。"""
    match = BV_PATTERN.search(url)
    if not match:
        raise InvalidUrlError(f"无效的B站视频链接: {url}")
    return match.group(0)


def is_favlist_url(url: str) -> bool:
    parsed = urlparse(url)
    return "space.bilibili.com" in parsed.netloc and "favlist" in parsed.path


def parse_favlist_url(url: str) -> FavoritesTarget:
    """从收藏夹URL中解析`mid`、`fid`与收藏夹类型。

    形如 ``https://space.bilibili.com/{mid}/favlist?fid={fid}``，
    订阅的收藏夹额外带有 ``ftype=collect``。
    """
    parsed = urlparse(url)
    segments = [s for s in parsed.path.split("/") if s]
    if not segments or not segments[0].isdigit():
        raise InvalidUrlError("无法在链接路径中找到用户 mid")
    query = parse_qs(parsed.query)
    candidates = query.get("fid") or query.get("media_id")
    if not candidates:
        raise InvalidUrlError("无法在链接查询参数中找到fid或media_id")
    value = candidates[0].strip()
    if not value.isdigit():
        raise InvalidUrlError(f"解析到的fid值无效: {value}")
    ftype = (query.get("ftype") or [""])[0].strip()
    kind = FavKind.SUBSCRIBED if ftype == "collect" else FavKind.OWNED
    return FavoritesTarget(mid=int(segments[0]), fid=int(value), kind=kind)


def classify_url(url: str) -> Union[VideoTarget, FavoritesTarget]:
    """判断输入是收藏夹链接还是视频链接。"""
    url = url.strip()
    if "bilibili.com/" not in url:
        raise InvalidUrlError("请输入有效的B站视频URL")
    if is_favlist_url(url):
        return parse_favlist_url(url)
    return VideoTarget(bvid=extract_bvid(url))


def build_session(cookie: Optional[str] = None, extra_headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """构造带默认Headers的requests会话。"""
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    if cookie:
        session.headers["Cookie"] = cookie
    if extra_headers:
        session.headers.update(extra_headers)
    return session


def format_duration(seconds: int) -> str:
    hours, remainder = divmod(max(int(seconds), 0), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}小时{minutes}分钟"
    if minutes:
        return f"{minutes}分钟{secs}秒"
    return f"{secs}秒"
