"""
工具模块单元测试
"""

from pathlib import Path

import pytest

from parcelkit.utils.logging import (
    LogStage,
    OutputLevel,
    close_logger,
    configure_logging,
    get_output_facade,
    get_stage_logger,
    info,
    set_log_level,
)
from parcelkit.utils.paths import (
    expand_path,
    format_size,
    is_within,
    join_base,
    normalize_archive_name,
)


class TestPaths:
    """路径工具测试"""

    def test_join_base(self, tmp_path):
        """测试与基准目录拼接"""
        assert join_base(tmp_path, "a/b") == tmp_path / "a" / "b"
        assert join_base(tmp_path, str(tmp_path / "x")) == tmp_path / "x"
        assert join_base(tmp_path, "a/../b") == tmp_path / "b"

    def test_is_within(self):
        """测试路径包含判断"""
        parent = Path("/srv/app")
        assert is_within(Path("/srv/app"), parent)
        assert is_within(Path("/srv/app/x/y.txt"), parent)
        assert not is_within(Path("/srv/application/x"), parent)
        assert not is_within(Path("/srv"), parent)

    def test_expand_path_user(self, monkeypatch, tmp_path):
        """测试展开用户目录"""
        monkeypatch.setenv("HOME", str(tmp_path))
        assert expand_path("~/project") == tmp_path / "project"

    @pytest.mark.parametrize("name, expected", [
        ("root.txt", "root.txt"),
        ("a\\b\\c.txt", "a/b/c.txt"),
        ("./a//b/", "a/b"),
        (" spaced.txt ", "spaced.txt"),
    ])
    def test_normalize_archive_name(self, name, expected):
        """测试归档名称规范化"""
        assert normalize_archive_name(name) == expected

    @pytest.mark.parametrize("name", ["", "   ", "/abs.txt", "C:/win.txt", "../up.txt", "."])
    def test_normalize_archive_name_invalid(self, name):
        """测试无效的归档名称"""
        with pytest.raises(ValueError):
            normalize_archive_name(name)

    def test_format_size(self):
        """测试大小格式化"""
        assert format_size(0) == "0 B"
        assert format_size(512) == "512 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"


class TestLogging:
    """日志门面测试"""

    @pytest.fixture(autouse=True)
    def fresh_facade(self, capsys):
        """每个用例使用新的门面，控制台绑定到被捕获的输出流"""
        close_logger()
        yield
        close_logger()

    def test_level_filtering(self, capsys):
        """测试按级别过滤输出"""
        set_log_level(OutputLevel.WARNING)
        info("should be hidden", stage=LogStage.COLLECT)
        get_stage_logger(LogStage.UPLOAD).warning("visible warning")

        out = capsys.readouterr().out
        assert "should be hidden" not in out
        assert "visible warning" in out

    def test_errors_go_to_stderr(self, capsys):
        """测试错误输出到 stderr"""
        get_stage_logger(LogStage.HASH).error("broken [thing]")

        captured = capsys.readouterr()
        assert "broken [thing]" in captured.err
        assert "broken" not in captured.out

    def test_unknown_level(self):
        """测试未知的日志级别"""
        with pytest.raises(ValueError):
            set_log_level("LOUD")

    def test_log_file(self, tmp_path):
        """测试写入日志文件"""
        log_file = tmp_path / "logs" / "parcel.log"
        configure_logging(OutputLevel.DEBUG, log_file)

        get_stage_logger(LogStage.ARCHIVE).debug("debug line")
        get_output_facade().close()

        content = log_file.read_text(encoding="utf-8")
        assert "[DEBUG] [ARCHIVE] debug line" in content
