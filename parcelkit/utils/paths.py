"""
路径工具

提供路径规范化、归档名称处理等工具函数。
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    只做词法上的规范化，不解析符号链接。

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的绝对路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(os.path.abspath(path))


def join_base(base_path: Path, entry: Union[str, Path]) -> Path:
    """将条目与基准路径拼接；绝对路径保持不变

    Args:
        base_path: 基准目录（绝对路径）
        entry: 相对或绝对路径

    Returns:
        Path: 规范化后的绝对路径
    """
    entry_path = Path(entry)
    if entry_path.is_absolute():
        return Path(os.path.normpath(entry_path))
    return Path(os.path.normpath(base_path / entry_path))


def is_within(path: Path, parent: Path) -> bool:
    """判断 path 是否等于 parent 或位于其下"""
    if path == parent:
        return True
    return parent in path.parents


def to_archive_name(relative_path: Union[str, Path]) -> str:
    """将相对路径转换为归档内名称（统一使用正斜杠）"""
    return str(relative_path).replace('\\', '/')


def normalize_archive_name(name: str) -> str:
    """规范化显式指定的归档名称

    Args:
        name: 归档内的目标名称

    Returns:
        str: 使用正斜杠、无多余分隔符的名称

    Raises:
        ValueError: 名称为空、为绝对路径或包含上级目录引用
    """
    cleaned = name.strip().replace('\\', '/')
    if not cleaned:
        raise ValueError("归档名称不能为空")

    posix = PurePosixPath(cleaned)
    has_drive = len(cleaned) > 1 and cleaned[0].isalpha() and cleaned[1] == ':'
    if posix.is_absolute() or has_drive:
        raise ValueError(f"不允许使用绝对路径作为归档名称: {name}")

    parts = [part for part in posix.parts if part not in ('', '.')]
    if any(part == '..' for part in parts):
        raise ValueError(f"检测到目录穿越尝试: {name}")
    if not parts:
        raise ValueError(f"归档名称无效: {name}")

    return '/'.join(parts)


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"


def default_base_path() -> Path:
    """默认的项目根目录：当前工作目录"""
    return Path(os.path.abspath(os.getcwd()))
