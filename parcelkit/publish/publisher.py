"""
幂等发布器

以包指纹生成对象键；远端已存在同名对象时不构建也不写入，
否则构建归档并一次性写入。失败不在内部重试，由调用方决定重试策略。
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

from ..build.errors import UploadFailedError
from ..build.package import Package
from ..utils import format_size
from ..utils.logging import error, info, success, LogStage
from .store import ObjectStore, S3ObjectStore

if TYPE_CHECKING:
    from ..config.schema import ParcelConfig

ARCHIVE_EXTENSION = "zip"


@dataclass
class UploadResult:
    """上传结果"""
    bucket: str
    key: str
    uploaded: bool  # False 表示远端已存在，未写入
    size: Optional[int] = None  # 写入的归档字节数


class Publisher:
    """幂等发布器"""

    def __init__(self, store: ObjectStore, namespace: str = "parcelkit", sequence: int = 1):
        if not 0 <= sequence <= 999:
            raise ValueError(f"序号必须在 0-999 之间: {sequence}")
        self.store = store
        self.namespace = namespace.strip().strip('/')
        self.sequence = sequence

    @classmethod
    def from_config(cls, config: 'ParcelConfig', store: Optional[ObjectStore] = None) -> 'Publisher':
        """根据配置创建发布器；未提供 store 时创建 S3 存储"""
        if store is None:
            store = S3ObjectStore.from_config(config.storage)
        return cls(store, namespace=config.package.namespace, sequence=config.package.sequence)

    def object_key(self, package: Package) -> str:
        """``{namespace}/{sequence:03d}-{fingerprint}.zip``"""
        return self._key_for(package.hash())

    def _key_for(self, fingerprint: str) -> str:
        return f"{self.namespace}/{self.sequence:03d}-{fingerprint}.{ARCHIVE_EXTENSION}"

    def deployment_configuration(self, package: Package) -> Dict[str, str]:
        """部署所需的存储位置，不访问远端"""
        return {
            'S3Bucket': self.store.bucket,
            'S3Key': self.object_key(package),
        }

    def upload(self, package: Package) -> UploadResult:
        """上传归档（远端已存在时跳过）

        文件集合只生成一次，对象键与归档都基于这一份集合。归档时读到的内容
        与指纹不符（文件在上传期间被修改）则放弃写入。

        Raises:
            InvalidPathError, SourceFileNotFoundError: 生成文件集合失败，此时不会访问远端
            UploadFailedError: 存在性检查或写入失败，或内容在上传期间发生变化
        """
        files = package.files()
        fingerprint = package.hash(files)
        key = self._key_for(fingerprint)
        location = f"{self.store.bucket}/{key}"

        try:
            exists = self.store.exists(key)
        except Exception as e:
            error(f"检查远端对象失败 {location}: {e}", stage=LogStage.UPLOAD)
            raise UploadFailedError(f"检查远端对象失败 {location}: {e}", key) from e

        if exists:
            info(f"远端已存在，跳过上传: {location}", stage=LogStage.UPLOAD)
            return UploadResult(bucket=self.store.bucket, key=key, uploaded=False)

        data, archived_fingerprint = package.build(files)
        if archived_fingerprint != fingerprint:
            error(f"归档内容与指纹不符，放弃写入 {location}", stage=LogStage.UPLOAD)
            raise UploadFailedError(f"文件在上传期间被修改，归档指纹为 {archived_fingerprint}", key)

        try:
            self.store.put(key, data)
        except Exception as e:
            error(f"写入远端对象失败 {location}: {e}", stage=LogStage.UPLOAD)
            raise UploadFailedError(f"写入远端对象失败 {location}: {e}", key) from e

        success(f"上传完成: {location} ({format_size(len(data))})", stage=LogStage.UPLOAD)
        return UploadResult(bucket=self.store.bucket, key=key, uploaded=True, size=len(data))
