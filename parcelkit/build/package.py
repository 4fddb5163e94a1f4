"""
部署包

调用方使用的主入口：累积包含/排除规则与精确映射，
然后生成文件集合、计算指纹、构建归档。
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Tuple, Union

from ..utils.logging import info, LogStage
from ..utils.paths import normalize_archive_name
from .archiver import ArchiveBuilder
from .collector import FileCollector, FileInfo
from .errors import InvalidPathError
from .hashing import DEFAULT_ALGORITHM, HashCalculator, calculate_fingerprint
from .rules import PathRules, RuleInput

if TYPE_CHECKING:
    from ..config.schema import ParcelConfig


class Package:
    """可部署的代码包

    实例不是线程安全的：生成文件集合、计算指纹或上传期间不要修改规则。
    """

    def __init__(
        self,
        base_path: Optional[Union[str, Path]] = None,
        configured_base_path: Optional[Union[str, Path]] = None,
        compression_level: int = 6,
        hash_algorithm: str = DEFAULT_ALGORITHM,
    ):
        self.rules = PathRules(base_path, configured_base_path)
        self.exact_includes: Dict[str, str] = {}
        self.compression_level = compression_level
        self.hash_algorithm = hash_algorithm

    @classmethod
    def make(cls, paths: Optional[RuleInput] = None, config: Optional['ParcelConfig'] = None) -> 'Package':
        """创建包并把 paths 作为包含规则（``!`` 开头的条目进入排除列表）"""
        package = cls.from_config(config) if config is not None else cls()
        if paths is not None:
            package.include(paths)
        return package

    @classmethod
    def from_config(cls, config: 'ParcelConfig') -> 'Package':
        """根据配置创建包：基准目录覆盖、规则、压缩级别与哈希算法"""
        package = cls(
            configured_base_path=config.package.base_path,
            compression_level=config.compression.level,
            hash_algorithm=config.hash.algorithm,
        )
        package.include(config.package.include)
        package.exclude(config.package.exclude)
        package.include_exactly(config.package.include_exactly)
        return package

    # ---- 基准目录 ----

    def set_base_path(self, path: Union[str, Path]) -> 'Package':
        self.rules.set_base_path(path)
        return self

    def get_base_path(self) -> Path:
        return self.rules.get_base_path()

    # ---- 规则 ----

    def include(self, entries: RuleInput) -> 'Package':
        self.rules.include(entries)
        return self

    def exclude(self, entries: RuleInput) -> 'Package':
        self.rules.exclude(entries)
        return self

    def include_exactly(self, mappings: Mapping[Union[str, Path], str]) -> 'Package':
        """注册精确映射：源文件 -> 归档内名称

        同一源文件重复注册时，后注册的名称覆盖之前的名称；相对路径与绝对路径
        写法在收集时解析到同一文件，同样按注册顺序以最后一次为准。

        Raises:
            InvalidPathError: 归档名称为空、为绝对路径或包含 ``..``
        """
        for source, target in mappings.items():
            try:
                name = normalize_archive_name(str(target))
            except ValueError as e:
                raise InvalidPathError(str(e)) from e
            key = os.path.normpath(str(source))
            # 重新注册时移到末尾，保持注册顺序
            self.exact_includes.pop(key, None)
            self.exact_includes[key] = name
        return self

    def get_included_paths(self) -> List[Path]:
        return self.rules.get_included_paths()

    def get_excluded_paths(self) -> List[Path]:
        return self.rules.get_excluded_paths()

    # ---- 构建 ----

    def files(self) -> List[FileInfo]:
        """生成文件集合（每次调用都重新读取文件系统）

        Raises:
            InvalidPathError: 包含路径不存在
            SourceFileNotFoundError: 精确映射的源文件不存在
        """
        self.rules.lock()
        return FileCollector(self.rules, self.exact_includes).collect_files()

    def hash(self, files: Optional[List[FileInfo]] = None) -> str:
        """计算文件集合的指纹

        Args:
            files: 已生成的文件集合；省略时重新生成
        """
        if files is None:
            files = self.files()
        fingerprint = calculate_fingerprint(files, self.hash_algorithm)
        info(f"包指纹: {fingerprint}", stage=LogStage.HASH)
        return fingerprint

    def archive(self, files: Optional[List[FileInfo]] = None) -> bytes:
        """构建 zip 归档字节"""
        if files is None:
            files = self.files()
        return ArchiveBuilder(self.compression_level).build(files)

    def build(self, files: Optional[List[FileInfo]] = None) -> Tuple[bytes, str]:
        """构建归档，同时返回归档内容的指纹

        指纹按写入归档的字节计算，与 ``hash()`` 的布局一致。
        """
        if files is None:
            files = self.files()
        hasher = HashCalculator(self.hash_algorithm)
        data = ArchiveBuilder(self.compression_level).build(files, hasher=hasher)
        return data, hasher.hexdigest()

    def write_archive(self, output_path: Union[str, Path]) -> Path:
        """构建归档并写入本地文件，便于检查内容"""
        return ArchiveBuilder(self.compression_level).write_to_path(self.files(), output_path)
