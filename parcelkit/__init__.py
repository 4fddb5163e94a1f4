"""
parcelkit - 确定性部署包构建与幂等上传

A deterministic package builder with fingerprint-keyed, idempotent uploads.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .build import (
    InvalidPathError,
    Package,
    PackageError,
    SourceFileNotFoundError,
    UploadFailedError,
)
from .config import ParcelConfig, load_config
from .publish import MemoryObjectStore, Publisher, S3ObjectStore

__all__ = [
    "Package",
    "Publisher",
    "ParcelConfig",
    "load_config",
    "S3ObjectStore",
    "MemoryObjectStore",
    "PackageError",
    "InvalidPathError",
    "SourceFileNotFoundError",
    "UploadFailedError",
    "__version__",
]
