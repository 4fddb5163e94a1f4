"""
部署包单元测试

覆盖完整流程：规则累积、文件集合、指纹稳定性、精确映射与归档内容。
"""

import io
import zipfile

import pytest

from parcelkit.build.errors import InvalidPathError, SourceFileNotFoundError
from parcelkit.build.package import Package
from parcelkit.config.schema import ParcelConfig

BASELINE_DIGEST = "eff551018b488419e0f0e824e1ac4b8a"
CHANGED_DIGEST = "c7103a8e01f94b69688e67b55ba4f2da"
EXACT_BAR_DIGEST = "df10a3bb51f1f175904eca747d04c638"
EXACT_BUZ_DIGEST = "955a3510ec336ba9da847150c13c85cb"
EXCLUDED_FILE1_DIGEST = "28d54da6f35a87fd5e954aca6f0014f9"


class TestFiles:
    """文件集合测试"""

    def test_it_includes_an_entire_directory(self, package, base_dir):
        """测试包含整个目录"""
        package.include(["Support/Files"])

        files = package.files()

        assert len(files) == 3
        assert sorted(f.path.name for f in files) == ["file1.txt", "file2.txt", "file3.txt"]
        for f in files:
            assert str(f.path).startswith(str(base_dir))

    def test_star_includes_everything_in_base_path(self, package, base_dir):
        """测试 * 包含基准目录全部内容"""
        package.set_base_path(base_dir / "Support" / "Files")
        package.include("*")

        assert len(package.files()) == 3

    def test_it_excludes_files(self, package):
        """测试排除文件"""
        package.include(["Support/Files"])
        package.exclude(["Support/Files/file1.txt"])

        files = package.files()

        assert len(files) == 2
        for f in files:
            assert "file1.txt" not in str(f.path)

    def test_files_reflect_live_filesystem(self, package, base_dir):
        """测试文件集合反映当前文件系统"""
        package.include(["Support/Files"])
        assert len(package.files()) == 3

        (base_dir / "Support" / "Files" / "file4.txt").write_text("new")

        assert len(package.files()) == 4

    def test_missing_include_fails(self, package):
        """测试包含路径不存在"""
        package.include("missing")

        with pytest.raises(InvalidPathError):
            package.files()


class TestHash:
    """指纹测试"""

    def test_hashes_are_stable(self, package):
        """测试指纹稳定"""
        package.include(["Support/Files"])

        assert package.hash() == BASELINE_DIGEST
        assert package.hash() == BASELINE_DIGEST

    def test_hashes_change_based_on_file_content(self, package, base_dir):
        """测试指纹随文件内容变化"""
        package.include(["Support/Files"])
        file3 = base_dir / "Support" / "Files" / "file3.txt"

        assert package.hash() == BASELINE_DIGEST

        file3.write_text("Some new data")
        assert package.hash() == CHANGED_DIGEST

        file3.write_bytes(b"")
        assert package.hash() == BASELINE_DIGEST

    def test_excluding_changes_hash(self, package):
        """测试排除文件改变指纹"""
        package.include(["Support/Files"]).exclude(["Support/Files/file1.txt"])

        assert package.hash() == EXCLUDED_FILE1_DIGEST

    def test_hash_independent_of_base_location(self, tmp_path):
        """指纹只依赖归档名称和内容，与基准目录所在位置无关"""
        digests = []
        for parent in ("one", "two"):
            files_dir = tmp_path / parent / "Support" / "Files"
            files_dir.mkdir(parents=True)
            for name in ("file1.txt", "file2.txt", "file3.txt"):
                (files_dir / name).write_bytes(b"")
            package = Package().set_base_path(tmp_path / parent).include("Support/Files")
            digests.append(package.hash())

        assert digests == [BASELINE_DIGEST, BASELINE_DIGEST]

    def test_exact_includes_affect_hashes(self, package, base_dir):
        """测试精确映射影响指纹"""
        package.include(["Support/Files"])
        source = base_dir / "Support" / "Files" / "file1.txt"

        assert package.hash() == BASELINE_DIGEST

        package.include_exactly({source: "bar"})
        assert package.hash() == EXACT_BAR_DIGEST

        package.include_exactly({str(source): "buz"})
        assert package.hash() == EXACT_BUZ_DIGEST


class TestExactIncludes:
    """精确映射测试"""

    def test_latest_target_wins(self, package, base_dir):
        """测试同一源文件以最后注册的名称为准"""
        source = base_dir / "Support" / "Files" / "file2.txt"
        package.include_exactly({source: "first.txt"})
        package.include_exactly({source: "second.txt"})

        with zipfile.ZipFile(io.BytesIO(package.archive())) as zf:
            assert zf.namelist() == ["second.txt"]

    def test_can_add_exact_files(self, package, base_dir):
        """测试添加精确映射文件"""
        source = base_dir / "Support" / "Files" / "file1.txt"
        source.write_text("1")
        package.include(["Support/Files"])
        package.include_exactly({source: "root.txt"})

        with zipfile.ZipFile(io.BytesIO(package.archive())) as zf:
            assert zf.namelist() == [
                "Support/Files/file1.txt",
                "Support/Files/file2.txt",
                "Support/Files/file3.txt",
                "root.txt",
            ]
            assert zf.read("root.txt") == b"1"

    def test_target_names_are_normalized(self, package, base_dir):
        """测试归档名称规范化"""
        source = base_dir / "Support" / "Files" / "file1.txt"
        package.include_exactly({source: "lib\\nested//file.txt"})

        assert package.exact_includes[str(source)] == "lib/nested/file.txt"

    @pytest.mark.parametrize("target", ["", "/etc/passwd", "../escape.txt", "a/../../b"])
    def test_invalid_target_names(self, package, base_dir, target):
        """测试无效的归档名称"""
        source = base_dir / "Support" / "Files" / "file1.txt"

        with pytest.raises(InvalidPathError):
            package.include_exactly({source: target})

    def test_relative_and_absolute_sources_are_one_mapping(self, package, base_dir):
        """测试同一文件的相对路径与绝对路径写法按最后一次注册为准"""
        absolute = base_dir / "Support" / "Files" / "file1.txt"
        package.include(["Support/Files"])
        package.include_exactly({"Support/Files/file1.txt": "bar"})
        package.include_exactly({absolute: "buz"})

        with zipfile.ZipFile(io.BytesIO(package.archive())) as zf:
            assert [name for name in zf.namelist() if name in ("bar", "buz")] == ["buz"]
        assert package.hash() == EXACT_BUZ_DIGEST

        package.include_exactly({"Support/Files/file1.txt": "qux"})

        names = [f.archive_name for f in package.files()]
        assert "qux" in names
        assert "buz" not in names

    def test_vanished_exact_source(self, package, base_dir):
        """测试精确映射源文件消失"""
        source = base_dir / "Support" / "Files" / "file1.txt"
        package.include_exactly({source: "root.txt"})
        source.unlink()

        with pytest.raises(SourceFileNotFoundError):
            package.hash()

        with pytest.raises(FileNotFoundError):
            package.archive()


class TestArchive:
    """归档测试"""

    def test_archive_is_reproducible(self, package):
        """测试归档可复现"""
        package.include(["Support/Files"])

        assert package.archive() == package.archive()

    def test_hash_and_archive_accept_a_file_set(self, package, base_dir):
        """测试指纹和归档可以基于已生成的文件集合"""
        package.include(["Support/Files"])
        files = package.files()
        (base_dir / "Support" / "Files" / "file4.txt").write_text("late")

        assert package.hash(files) == BASELINE_DIGEST
        with zipfile.ZipFile(io.BytesIO(package.archive(files))) as zf:
            assert len(zf.namelist()) == 3

    def test_build_returns_fingerprint_of_archived_bytes(self, package, base_dir):
        """测试 build 返回的指纹来自写入归档的内容"""
        package.include(["Support/Files"])
        files = package.files()

        data, fingerprint = package.build(files)
        assert fingerprint == BASELINE_DIGEST
        assert data == package.archive(files)

        (base_dir / "Support" / "Files" / "file3.txt").write_text("Some new data")
        data, fingerprint = package.build(files)
        assert fingerprint == CHANGED_DIGEST
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.read("Support/Files/file3.txt") == b"Some new data"

    def test_write_archive(self, package, tmp_path):
        """测试写入归档文件"""
        package.include(["Support/Files"])

        output = package.write_archive(tmp_path / "dist" / "package.zip")

        with zipfile.ZipFile(output) as zf:
            assert len(zf.namelist()) == 3


class TestFromConfig:
    """从配置创建包"""

    def test_from_config(self, base_dir):
        """测试从配置创建包"""
        config = ParcelConfig.from_dict({
            'storage': {'bucket': 'sidecar-bucket'},
            'package': {
                'base_path': str(base_dir),
                'include': ['Support/Files', '!Support/Files/file1.txt'],
                'exclude': ['Support/Files/file2.txt'],
                'include_exactly': {'Support/Files/file1.txt': 'root.txt'},
            },
            'compression': {'level': 9},
            'hash': {'algorithm': 'sha1'},
        })

        package = Package.from_config(config)

        assert package.get_base_path() == base_dir
        assert package.compression_level == 9
        assert package.hash_algorithm == 'sha1'
        assert [f.archive_name for f in package.files()] == ["Support/Files/file3.txt", "root.txt"]
        assert len(package.hash()) == 40

    def test_make_with_config_and_paths(self, base_dir):
        """测试 make 同时使用配置和路径"""
        config = ParcelConfig.from_dict({
            'storage': {'bucket': 'sidecar-bucket'},
            'package': {'base_path': str(base_dir)},
        })

        package = Package.make(["Support/Files"], config=config)

        assert package.hash() == BASELINE_DIGEST

    def test_explicit_base_path_beats_config(self, base_dir, tmp_path):
        """测试显式基准目录优先于配置"""
        config = ParcelConfig.from_dict({
            'storage': {'bucket': 'sidecar-bucket'},
            'package': {'base_path': str(tmp_path / "elsewhere")},
        })

        package = Package.from_config(config).set_base_path(base_dir)

        assert package.get_base_path() == base_dir
