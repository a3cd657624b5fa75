"""交互式B站视频下载 CLI。"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from . import console
from .bili_client import BiliClient, FavoritesFetchError, MetadataFetchError, StreamResolutionError
from .config_store import ConfigStore, DownloaderConfig
from .downloader import TransferError, VideoDownloader
from .engine import DownloadEngine
from .models import RunSettings
from .resolver import Confirm
from .utils import FavoritesTarget, InvalidUrlError, build_session, classify_url

app = typer.Typer(add_completion=False, help="B站视频下载工具：支持单个视频、合集和收藏夹")

MODE_SINGLE = "1"
MODE_COLLECTION = "2"
FATAL_ERRORS = (InvalidUrlError, MetadataFetchError, StreamResolutionError, TransferError, FavoritesFetchError)


def _resolve_download_dir(input_value: str) -> Path:
    directory = Path(input_value).expanduser().resolve()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _prompt_non_empty(message: str) -> str:
    while True:
        value = typer.prompt(message).strip()
        if value:
            return value
        typer.secho("输入不能为空，请重试。", fg=typer.colors.RED)


def _ask_ignore_duration() -> bool:
    return typer.confirm("是否忽略视频时长检查（超过1小时的视频将直接下载）?", default=False)


def _ask_download_dir(default_dir: Optional[str]) -> Path:
    value = typer.prompt(
        "请输入下载目录 (直接回车使用当前目录)",
        default=default_dir or "",
        show_default=bool(default_dir),
    ).strip()
    if not value:
        console.info("将使用当前目录作为下载目录")
        return Path.cwd()
    directory = _resolve_download_dir(value)
    console.success(f"下载目录已设置为: {directory}")
    return directory


def _ask_mode() -> str:
    typer.secho("\n请选择下载模式:", fg=typer.colors.CYAN)
    typer.echo(f"{MODE_SINGLE}. 下载单个视频")
    typer.echo(f"{MODE_COLLECTION}. 下载整个合集(如果存在)")
    return typer.prompt("请输入选择 (1 或 2)", default="", show_default=False).strip()


def _build_confirm(assume_yes: bool) -> Confirm:
    if not assume_yes:
        return lambda question: typer.confirm(question, default=False)

    def _always_yes(question: str) -> bool:
        console.info(f"{question} [自动确认]")
        return True

    return _always_yes


def _run_session(
    url: Optional[str],
    config: DownloaderConfig,
    *,
    download_dir: Optional[str],
    ignore_duration: Optional[bool],
    mode: Optional[str],
    cookie: Optional[str],
    timeout: Optional[float],
    quality: Optional[int],
    assume_yes: bool,
    dry_run: bool,
) -> None:
    if url is None:
        url = _prompt_non_empty("请输入B站视频URL或收藏夹URL")
    target = classify_url(url)

    typer.secho("\n=== 下载设置 ===", fg=typer.colors.CYAN)
    if ignore_duration is None:
        ignore_duration = _ask_ignore_duration()
    if ignore_duration:
        console.info("已设置忽略视频时长检查")
    root = _resolve_download_dir(download_dir) if download_dir else _ask_download_dir(config.download_dir)
    settings = RunSettings(download_root=root, ignore_duration_check=ignore_duration, dry_run=dry_run)
    if dry_run:
        typer.secho("当前处于 dry-run 模式，不会执行实际下载。", fg=typer.colors.YELLOW)

    session = build_session(cookie=cookie or config.cookie)
    timeout = timeout if timeout is not None else config.timeout
    client = BiliClient(
        session=session,
        timeout=timeout,
        quality=quality if quality is not None else config.quality,
        page_delay=config.page_delay,
    )
    engine = DownloadEngine(
        client,
        VideoDownloader(session=session, timeout=timeout),
        settings,
        _build_confirm(assume_yes),
        item_delay=config.item_delay,
    )

    if isinstance(target, FavoritesTarget):
        console.info("检测到收藏夹链接，准备下载收藏夹内容...")
        engine.download_favorites(target)
        return

    choice = mode if mode is not None else _ask_mode()
    if choice == MODE_COLLECTION:
        engine.download_collection(target.bvid)
        return
    if choice != MODE_SINGLE:
        console.warning("无效的选择，默认下载单个视频")
    engine.download_video(target.bvid)


@app.command()
def download(
    url: Optional[str] = typer.Argument(None, help="视频或收藏夹链接，留空则交互输入"),
    config_path: Optional[Path] = typer.Option(None, "--config-path", help="自定义配置文件路径"),
    download_dir: Optional[str] = typer.Option(None, "--download-dir", "-d", help="下载目录"),
    ignore_duration: Optional[bool] = typer.Option(
        None, "--ignore-duration/--check-duration", help="是否忽略超过1小时视频的确认"
    ),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="1=单个视频，2=合集"),
    cookie: Optional[str] = typer.Option(None, "--cookie", help="必要时附加的Cookie"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="请求超时时间(秒)"),
    quality: Optional[int] = typer.Option(None, "--quality", "-q", help="清晰度 qn，默认80"),
    yes: bool = typer.Option(False, "--yes", "-y", help="所有确认均自动回答是"),
    dry_run: bool = typer.Option(False, "--dry-run", help="仅展示将要下载的文件，不实际下载"),
) -> None:
    """下载单个视频、合集或收藏夹。"""
    config = ConfigStore(config_path).load()
    console.show_title()
    try:
        _run_session(
            url,
            config,
            download_dir=download_dir,
            ignore_duration=ignore_duration,
            mode=mode,
            cookie=cookie,
            timeout=timeout,
            quality=quality,
            assume_yes=yes,
            dry_run=dry_run,
        )
    except (KeyboardInterrupt, typer.Abort):
        console.warning("\n程序已终止")
        raise typer.Exit(code=0)
    except FATAL_ERRORS as exc:
        console.error(f"处理失败: {exc}")
        raise typer.Exit(code=1) from exc


@app.command(name="config")
def config_command(
    config_path: Optional[Path] = typer.Option(None, "--config-path", help="自定义配置文件路径"),
) -> None:
    """查看并编辑默认配置，直接回车表示保持现值。"""
    store = ConfigStore(config_path)
    config = store.load()
    typer.echo(f"配置文件：{store.storage_path}")

    typer.echo(f"当前默认下载目录：{config.download_dir or '(当前目录)'}")
    dir_input = typer.prompt("新的下载目录 (输入-清除)", default="", show_default=False).strip()
    if dir_input == "-":
        config.download_dir = None
    elif dir_input:
        config.download_dir = str(Path(dir_input).expanduser().resolve())

    typer.echo(f"当前 Cookie：{config.cookie or '(未设置)'}")
    cookie_input = typer.prompt("新的 Cookie (输入-清除)", default="", show_default=False).strip()
    if cookie_input == "-":
        config.cookie = None
    elif cookie_input:
        config.cookie = cookie_input

    typer.echo(f"当前超时时间：{config.timeout}")
    timeout_input = typer.prompt("新的超时时间 (秒)", default="", show_default=False).strip()
    if timeout_input:
        try:
            config.timeout = float(timeout_input)
        except ValueError:
            typer.secho("超时时间格式无效，保持原值。", fg=typer.colors.YELLOW)

    typer.echo(f"当前清晰度 qn：{config.quality}")
    quality_input = typer.prompt("新的清晰度 qn", default="", show_default=False).strip()
    if quality_input.isdigit():
        config.quality = int(quality_input)

    store.save(config)
    typer.secho("配置已更新。", fg=typer.colors.GREEN)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
