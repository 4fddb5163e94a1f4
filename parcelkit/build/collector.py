"""
文件收集器

根据包含/排除规则和精确映射生成最终的文件集合。
文件集合按归档名称去重、排序，与目录遍历顺序无关。
"""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..utils import format_size
from ..utils.logging import debug, error, info, warning, LogStage
from ..utils.paths import is_within, join_base, to_archive_name
from .errors import InvalidPathError, SourceFileNotFoundError
from .rules import PathRules


@dataclass(frozen=True)
class FileInfo:
    """文件集合中的一项"""
    path: Path  # 源文件绝对路径
    archive_name: str  # 归档内名称（正斜杠）
    size: int  # 收集时的文件大小（字节）
    exact: bool = False  # 是否来自精确映射

    def to_dict(self) -> Dict[str, object]:
        return {
            'path': self.path.as_posix(),
            'archive_name': self.archive_name,
            'size': self.size,
            'exact': self.exact,
        }


class FileCollector:
    """文件收集器

    负责遍历包含路径、应用排除规则并合并精确映射。
    """

    def __init__(self, rules: PathRules, exact_mappings: Optional[Dict[str, str]] = None):
        self.rules = rules
        # 源路径（相对路径相对于基准目录）-> 已规范化的归档名称
        self.exact_mappings: Dict[str, str] = dict(exact_mappings or {})
        self.collected_files: List[FileInfo] = []
        self.total_size: int = 0

    def collect_files(self) -> List[FileInfo]:
        """收集文件

        Returns:
            List[FileInfo]: 按归档名称排序的文件集合

        Raises:
            InvalidPathError: 包含路径不存在或类型不支持
            SourceFileNotFoundError: 精确映射的源文件不存在
        """
        base_path = self.rules.get_base_path()
        excluded_roots = self.rules.get_excluded_roots()
        excluded_patterns = self.rules.get_excluded_patterns()

        by_name: Dict[str, FileInfo] = {}

        for include_path in self.rules.get_included_paths():
            for file_path in self._iter_candidates(include_path):
                if self._is_excluded(file_path, excluded_roots, excluded_patterns):
                    continue

                archive_name = self._archive_name(file_path, base_path, include_path)
                if archive_name in by_name:
                    continue

                by_name[archive_name] = FileInfo(
                    path=file_path,
                    archive_name=archive_name,
                    size=file_path.stat().st_size,
                )

        # 同一源文件的不同写法按解析后的路径合并，后注册的覆盖先注册的
        exact_targets: Dict[Path, str] = {}
        for source, target in self.exact_mappings.items():
            resolved = join_base(base_path, source)
            exact_targets.pop(resolved, None)
            exact_targets[resolved] = target

        # 精确映射最后合并，覆盖同名的规则条目
        for source_path, target in exact_targets.items():
            file_info = self._exact_file_info(source_path, target)
            if file_info.archive_name in by_name and not by_name[file_info.archive_name].exact:
                debug(f"精确映射覆盖规则条目: {file_info.archive_name}", stage=LogStage.COLLECT)
            by_name[file_info.archive_name] = file_info

        self.collected_files = [by_name[name] for name in sorted(by_name)]
        self.total_size = sum(f.size for f in self.collected_files)

        info(
            f"收集到 {len(self.collected_files)} 个文件，共 {format_size(self.total_size)}",
            stage=LogStage.COLLECT,
        )
        for idx, f in enumerate(self.collected_files[:20]):
            debug(f"文件[{idx}]: {f.archive_name} size={format_size(f.size)}", stage=LogStage.COLLECT)
        if len(self.collected_files) > 20:
            debug(f"... 还有 {len(self.collected_files) - 20} 个文件未列出", stage=LogStage.COLLECT)

        return self.collected_files

    def get_statistics(self) -> Dict[str, object]:
        """获取收集统计信息"""
        return {
            'total_files': len(self.collected_files),
            'exact_files': sum(1 for f in self.collected_files if f.exact),
            'total_size': self.total_size,
            'total_size_mb': round(self.total_size / (1024 * 1024), 2),
        }

    def _iter_candidates(self, include_path: Path) -> Iterator[Path]:
        if include_path.is_file():
            yield include_path
        elif include_path.is_dir():
            yield from self._walk_directory(include_path)
        elif not os.path.lexists(include_path):
            error(f"包含路径不存在: {include_path}", stage=LogStage.COLLECT)
            raise InvalidPathError(f"包含路径不存在: {include_path}")
        else:
            raise InvalidPathError(f"包含路径既不是文件也不是目录: {include_path}")

    def _walk_directory(self, directory: Path) -> Iterator[Path]:
        """递归遍历目录，只产出普通文件

        不进入符号链接目录；指向文件的符号链接按文件处理。
        """
        try:
            children = sorted(directory.iterdir())
        except PermissionError as e:
            warning(f"跳过无权限访问的目录 {directory}: {e}", stage=LogStage.COLLECT)
            return

        for item in children:
            if item.is_symlink() and item.is_dir():
                debug(f"跳过符号链接目录: {item}", stage=LogStage.COLLECT)
                continue
            if item.is_dir():
                yield from self._walk_directory(item)
            elif item.is_file():
                yield item

    def _is_excluded(self, file_path: Path, excluded_roots: List[Path], excluded_patterns: List[str]) -> bool:
        """检查文件是否被排除

        普通排除路径按“等于或位于其下”判断；glob 模式匹配文件的绝对 POSIX 路径。
        """
        for root in excluded_roots:
            if is_within(file_path, root):
                return True

        if excluded_patterns:
            path_str = file_path.as_posix()
            for pattern in excluded_patterns:
                if fnmatch.fnmatchcase(path_str, pattern):
                    return True

        return False

    def _archive_name(self, file_path: Path, base_path: Path, include_path: Path) -> str:
        """计算归档内名称

        基准目录下的文件使用相对基准目录的路径；基准目录之外的文件
        使用相对包含条目父目录的路径。
        """
        if is_within(file_path, base_path) and file_path != base_path:
            return to_archive_name(file_path.relative_to(base_path).as_posix())
        return to_archive_name(file_path.relative_to(include_path.parent).as_posix())

    def _exact_file_info(self, source: Path, target: str) -> FileInfo:
        try:
            stat = source.stat()
        except FileNotFoundError as e:
            error(f"精确映射的源文件不存在: {source}", stage=LogStage.COLLECT)
            raise SourceFileNotFoundError(f"精确映射的源文件不存在: {source}") from e

        if not source.is_file():
            raise InvalidPathError(f"精确映射的源路径不是文件: {source}")

        return FileInfo(path=source, archive_name=target, size=stat.st_size, exact=True)


def collect_files(rules: PathRules, exact_mappings: Optional[Dict[str, str]] = None) -> List[FileInfo]:
    """便捷函数：收集文件"""
    return FileCollector(rules, exact_mappings).collect_files()
