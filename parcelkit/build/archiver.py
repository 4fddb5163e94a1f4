"""
归档构建器

把文件集合序列化为可复现的 zip 字节流：条目顺序与文件集合一致，
时间戳、权限和创建系统均固定，相同的文件集合总是得到相同的字节。
"""

import io
import stat
import zipfile
from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol, Union

from ..utils import format_size
from ..utils.logging import debug, error, info, LogStage
from .collector import FileInfo
from .errors import ArchiveError, SourceFileNotFoundError
from .hashing import HashCalculator

# zip 格式允许的最早时间戳
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
FILE_MODE = stat.S_IFREG | 0o644


class ProgressCallback(Protocol):
    """进度回调协议"""

    def __call__(self, current: int, total: int, current_file: Optional[str] = None) -> None:
        """
        Args:
            current: 已写入的文件数
            total: 文件总数
            current_file: 当前处理的归档名称
        """
        ...


class ArchiveBuilder:
    """确定性 zip 归档构建器"""

    def __init__(self, level: int = 6):
        self.level = min(9, max(0, level))

    def _zip_info(self, archive_name: str) -> zipfile.ZipInfo:
        zi = zipfile.ZipInfo(filename=archive_name, date_time=ZIP_EPOCH)
        zi.create_system = 3  # Unix
        zi.external_attr = FILE_MODE << 16
        zi.compress_type = zipfile.ZIP_DEFLATED if self.level > 0 else zipfile.ZIP_STORED
        return zi

    def write_files(
        self,
        files: List[FileInfo],
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None,
        hasher: Optional[HashCalculator] = None,
    ) -> int:
        """把文件集合写入输出流

        提供 hasher 时，写入归档的每个条目同时计入指纹，
        指纹与归档内容来自同一次读取。

        Returns:
            int: 写入的条目数

        Raises:
            SourceFileNotFoundError: 源文件在读取前消失
            ArchiveError: 其他归档错误
        """
        ordered = sorted(files, key=lambda f: f.archive_name)
        total = len(ordered)

        try:
            with zipfile.ZipFile(output_stream, 'w') as zf:
                for index, file_info in enumerate(ordered):
                    if progress_callback:
                        progress_callback(index, total, file_info.archive_name)

                    try:
                        data = file_info.path.read_bytes()
                    except FileNotFoundError as e:
                        raise SourceFileNotFoundError(f"源文件不存在: {file_info.path}") from e

                    if hasher is not None:
                        hasher.update_entry(file_info.archive_name, data)

                    zi = self._zip_info(file_info.archive_name)
                    zf.writestr(zi, data, compresslevel=self.level if self.level > 0 else None)

                if progress_callback:
                    progress_callback(total, total, None)
        except SourceFileNotFoundError as e:
            error(str(e), stage=LogStage.ARCHIVE)
            raise
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            error(f"归档失败: {e}", stage=LogStage.ARCHIVE)
            raise ArchiveError(f"归档失败: {e}") from e

        return total

    def build(
        self,
        files: List[FileInfo],
        progress_callback: Optional[ProgressCallback] = None,
        hasher: Optional[HashCalculator] = None,
    ) -> bytes:
        """构建归档并返回字节"""
        buffer = io.BytesIO()
        count = self.write_files(files, buffer, progress_callback, hasher)
        data = buffer.getvalue()

        info(f"归档完成: {count} 个条目，{format_size(len(data))}", stage=LogStage.ARCHIVE)
        debug(f"归档数据长度={len(data)} bytes, 压缩级别={self.level}", stage=LogStage.ARCHIVE)
        return data

    def write_to_path(self, files: List[FileInfo], output_path: Union[str, Path]) -> Path:
        """构建归档并写入本地文件"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.build(files))
        return output_path
