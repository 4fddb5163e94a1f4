"""
指纹计算

对文件集合计算稳定的内容摘要。

摘要输入的字节布局（按归档名称排序后逐项拼接）::

    <归档名称 UTF-8> \\0 <文件字节数的十进制 ASCII> \\0 <文件原始内容>

字节数字段保证了名称与内容之间的边界无歧义。时间戳、权限、遍历顺序均不参与计算。
"""

import hashlib
import os
from pathlib import Path
from typing import Iterable, Union

from ..utils.logging import debug, error, LogStage
from .collector import FileInfo
from .errors import SourceFileNotFoundError

DEFAULT_ALGORITHM = "md5"
CHUNK_SIZE = 64 * 1024


class HashCalculator:
    """哈希计算器"""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM):
        """初始化哈希计算器

        Args:
            algorithm: hashlib 支持的哈希算法名称
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")

        self._hasher = hashlib.new(self.algorithm)

    def update(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode('utf-8')
        self._hasher.update(data)

    def update_entry(self, archive_name: str, data: bytes) -> None:
        """写入一个已读入内存的条目，布局与 calculate_fingerprint 相同"""
        self.update(archive_name)
        self.update(f"\0{len(data)}\0")
        self._hasher.update(data)

    def update_from_file(self, file_path: Path, chunk_size: int = CHUNK_SIZE) -> int:
        """写入 ``<size>\\0<content>``，返回文件字节数

        大小取自已打开文件的 fstat，与随后读取的内容保持一致。

        Raises:
            SourceFileNotFoundError: 文件不存在
        """
        try:
            with open(file_path, 'rb') as f:
                size = os.fstat(f.fileno()).st_size
                self.update(f"{size}\0")
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    self._hasher.update(chunk)
        except FileNotFoundError as e:
            raise SourceFileNotFoundError(f"源文件不存在: {file_path}") from e
        return size

    def hexdigest(self) -> str:
        return self._hasher.hexdigest()

    def digest(self) -> bytes:
        return self._hasher.digest()


def calculate_fingerprint(files: Iterable[FileInfo], algorithm: str = DEFAULT_ALGORITHM) -> str:
    """计算文件集合的指纹

    Args:
        files: 文件集合（内部会按归档名称重新排序）
        algorithm: 哈希算法

    Returns:
        str: 十六进制摘要

    Raises:
        SourceFileNotFoundError: 源文件在读取前消失
    """
    calculator = HashCalculator(algorithm)
    ordered = sorted(files, key=lambda f: f.archive_name)

    for file_info in ordered:
        calculator.update(file_info.archive_name)
        calculator.update(b"\0")
        try:
            calculator.update_from_file(file_info.path)
        except SourceFileNotFoundError as e:
            error(str(e), stage=LogStage.HASH)
            raise

    fingerprint = calculator.hexdigest()
    debug(f"指纹 ({algorithm}, {len(ordered)} 个文件): {fingerprint}", stage=LogStage.HASH)
    return fingerprint
