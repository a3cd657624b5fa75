from pathlib import Path

from helpers import FakeClient, ScriptedConfirm, make_multi_part, make_video

from bv_downloader.models import CollectionInfo, Episode, FavKind, FavoriteItem, FavoritesList
from bv_downloader.resolver import collection_tasks, expand_collection, expand_favorites


def _season(title: str, *bvids: str) -> CollectionInfo:
    return CollectionInfo(title=title, episodes=tuple(Episode(bvid=b, title=b) for b in bvids))


def test_collection_tasks_keep_order_and_directory(tmp_path: Path) -> None:
    collection = _season("合集", "BV1c00000003", "BV1c00000001", "BV1c00000002")

    tasks = collection_tasks(collection, tmp_path / "合集")

    assert [t.ref.bvid for t in tasks] == ["BV1c00000003", "BV1c00000001", "BV1c00000002"]
    assert {t.target_dir for t in tasks} == {tmp_path / "合集"}
    assert all(t.ref.page == 1 and t.ref.collection_title == "合集" for t in tasks)


def test_expand_collection_multi_part(settings) -> None:
    video = make_video("BV1multi0001", "三集: 系列", pages=3)
    client = FakeClient({video.bvid: video}, {video.bvid: make_multi_part(video)})

    tasks = expand_collection(client, video.bvid, settings)

    assert [t.ref.page for t in tasks] == [1, 2, 3]
    assert {t.target_dir for t in tasks} == {settings.download_root / "三集_ 系列"}


def test_expand_collection_none(settings) -> None:
    video = make_video("BV1single001", "单个")
    assert expand_collection(FakeClient({video.bvid: video}), video.bvid, settings) is None


def test_expand_subscribed_favorites_never_resolves_collections(settings) -> None:
    favorites = FavoritesList(
        title="订阅",
        kind=FavKind.SUBSCRIBED,
        items=(FavoriteItem("BV1sub0000001", "甲"), FavoriteItem("BV1sub0000002", "乙")),
    )
    client = FakeClient({}, {"BV1sub0000001": _season("不应展开", "BV1x")})

    expansion = expand_favorites(client, favorites, settings, ScriptedConfirm())

    assert [t.ref.bvid for t in expansion.tasks] == ["BV1sub0000001", "BV1sub0000002"]
    assert {t.target_dir for t in expansion.tasks} == {settings.download_root / "订阅"}


def test_expand_owned_favorites_confirms_each_collection_once(settings) -> None:
    favorites = FavoritesList(
        title="我的收藏",
        kind=FavKind.OWNED,
        items=(
            FavoriteItem("BV1item000001", "第一集"),
            FavoriteItem("BV1plain00001", "普通视频"),
            FavoriteItem("BV1item000002", "第二集"),
        ),
    )
    season = _season("连载", "BV1item000001", "BV1item000002")
    plain = make_video("BV1plain00001", "普通视频")
    client = FakeClient(
        {plain.bvid: plain},
        {"BV1item000001": season, "BV1item000002": season},
    )
    confirm = ScriptedConfirm(True)

    expansion = expand_favorites(client, favorites, settings, confirm)

    assert len(confirm.questions) == 1
    assert "连载" in confirm.questions[0]
    assert settings.confirmed_collection_titles == {"连载"}
    fav_dir = settings.download_root / "我的收藏"
    assert [(t.ref.bvid, t.target_dir) for t in expansion.tasks] == [
        ("BV1item000001", fav_dir / "第一集"),
        ("BV1item000002", fav_dir / "第一集"),
        ("BV1plain00001", fav_dir),
        ("BV1item000001", fav_dir / "第二集"),
        ("BV1item000002", fav_dir / "第二集"),
    ]
    assert not expansion.tasks[0].requires_confirmation
    assert expansion.tasks[2].requires_confirmation


def test_expand_owned_favorites_skips_declined_collection(settings) -> None:
    favorites = FavoritesList(
        title="收藏",
        kind=FavKind.OWNED,
        items=(FavoriteItem("BV1item000001", "合集条目"), FavoriteItem("BV1item000002", "同合集")),
    )
    season = _season("连载", "BV1item000001", "BV1item000002")
    client = FakeClient({}, {"BV1item000001": season, "BV1item000002": season})
    confirm = ScriptedConfirm(False)

    expansion = expand_favorites(client, favorites, settings, confirm)

    assert expansion.tasks == []
    assert expansion.declined == ["合集条目", "同合集"]
    assert len(confirm.questions) == 1
    assert not settings.confirmed_collection_titles


def test_expand_owned_favorites_uses_earlier_confirmation(settings) -> None:
    settings.confirm_collection("连载")
    favorites = FavoritesList("收藏", FavKind.OWNED, (FavoriteItem("BV1item000001", "条目"),))
    client = FakeClient({}, {"BV1item000001": _season("连载", "BV1item000001")})
    confirm = ScriptedConfirm()

    expansion = expand_favorites(client, favorites, settings, confirm)

    assert confirm.questions == []
    assert len(expansion.tasks) == 1


def test_expand_owned_favorites_records_resolution_failure(settings) -> None:
    plain = make_video("BV1plain00001", "好的")
    favorites = FavoritesList(
        "收藏",
        FavKind.OWNED,
        (FavoriteItem("BV1gone000001", "已失效"), FavoriteItem(plain.bvid, "好的")),
    )

    expansion = expand_favorites(FakeClient({plain.bvid: plain}), favorites, settings, ScriptedConfirm())

    assert [t.ref.bvid for t in expansion.tasks] == [plain.bvid]
    assert expansion.failures and expansion.failures[0][0] == "已失效"
