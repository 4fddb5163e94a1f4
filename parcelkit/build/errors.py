"""
构建错误定义

打包过程中所有阶段共享的异常类。
"""


class PackageError(Exception):
    """打包错误基类"""
    pass


class InvalidPathError(PackageError):
    """包含路径不存在，或路径/归档名称不合法"""
    pass


class SourceFileNotFoundError(PackageError, FileNotFoundError):
    """源文件在读取前消失（常见于精确映射的源文件）"""
    pass


class ArchiveError(PackageError):
    """归档序列化失败"""
    pass


class UploadFailedError(PackageError):
    """远端存在性检查或写入失败"""

    def __init__(self, message: str, key: str):
        super().__init__(message)
        self.key = key
