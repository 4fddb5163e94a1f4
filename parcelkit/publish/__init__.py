"""发布模块

把部署包上传到对象存储，按指纹保证幂等。
"""

from .publisher import Publisher, UploadResult
from .store import MemoryObjectStore, ObjectStore, S3ObjectStore, StorageError

__all__ = [
    "Publisher",
    "UploadResult",
    "ObjectStore",
    "S3ObjectStore",
    "MemoryObjectStore",
    "StorageError",
]
