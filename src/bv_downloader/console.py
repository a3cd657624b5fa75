"""终端输出：带颜色的提示行与信息摘要。"""
from __future__ import annotations

from typing import Sequence

import typer

from .models import CollectionInfo, FavoritesList, VideoMetadata
from .utils import format_duration


def info(message: str) -> None:
    typer.secho(message, fg=typer.colors.BLUE)


def success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)


def show_title() -> None:
    typer.secho("==== B站视频下载工具 ====", fg=typer.colors.CYAN, bold=True)
    typer.secho("支持单个视频、合集和收藏夹下载\n", fg=typer.colors.BRIGHT_BLACK)


def show_video(metadata: VideoMetadata) -> None:
    typer.secho("视频信息", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  标题: {metadata.title}")
    if metadata.owner:
        typer.echo(f"  UP主: {metadata.owner}")
    typer.echo(f"  时长: {format_duration(metadata.duration)}")


def _show_indexed(header: str, titles: Sequence[str]) -> None:
    typer.secho(f"\n{header}", fg=typer.colors.YELLOW)
    typer.secho(f"共 {len(titles)} 个视频", fg=typer.colors.YELLOW)
    width = len(str(len(titles)))
    for idx, title in enumerate(titles, start=1):
        typer.echo(f"  {idx:>{width}}. {title}")


def show_collection(collection: CollectionInfo) -> None:
    label = "分P视频" if collection.multi_part else "合集"
    _show_indexed(f"{label}: {collection.title}", [ep.title for ep in collection.episodes])


def show_favorites(favorites: FavoritesList) -> None:
    _show_indexed(f"收藏夹: {favorites.title}", [item.title for item in favorites.items])
