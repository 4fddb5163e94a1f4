"""
测试公共夹具
"""

from pathlib import Path

import pytest

from parcelkit.build.package import Package


@pytest.fixture
def base_dir(tmp_path) -> Path:
    """基准目录，包含 Support/Files/file{1,2,3}.txt（内容均为空）"""
    files_dir = tmp_path / "Support" / "Files"
    files_dir.mkdir(parents=True)
    for name in ("file1.txt", "file2.txt", "file3.txt"):
        (files_dir / name).write_bytes(b"")
    return tmp_path


@pytest.fixture
def package(base_dir) -> Package:
    """基准目录已设置、尚无规则的包"""
    return Package().set_base_path(base_dir)
