"""构建服务模块

提供规则解析、文件收集、指纹计算和归档构建功能。
"""

from .archiver import ArchiveBuilder
from .collector import FileCollector, FileInfo, collect_files
from .errors import (
    ArchiveError,
    InvalidPathError,
    PackageError,
    SourceFileNotFoundError,
    UploadFailedError,
)
from .hashing import HashCalculator, calculate_fingerprint
from .package import Package
from .rules import PathRules

__all__ = [
    # 主入口
    "Package",

    # 规则与文件收集
    "PathRules",
    "FileCollector",
    "FileInfo",
    "collect_files",

    # 指纹与归档
    "HashCalculator",
    "calculate_fingerprint",
    "ArchiveBuilder",

    # 异常
    "PackageError",
    "InvalidPathError",
    "SourceFileNotFoundError",
    "ArchiveError",
    "UploadFailedError",
]
