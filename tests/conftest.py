import sys
from pathlib import Path

import pytest

# 确保src目录在导入路径中
SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if SRC_PATH.exists():
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def settings(tmp_path: Path):
    from bv_downloader.models import RunSettings

    return RunSettings(download_root=tmp_path)


@pytest.fixture
def sleeps() -> list:
    """记录被请求的等待时长，代替真实的 time.sleep。"""
    return []
