"""
对象存储适配器

发布器只依赖两个操作：``exists(key)`` 与 ``put(key, data)``。
这里提供基于 boto3 的 S3 实现和一个内存实现。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..utils.logging import debug, LogStage

if TYPE_CHECKING:
    from ..config.schema import StorageModel

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageError(Exception):
    """对象存储操作失败"""
    pass


class ObjectStore(Protocol):
    """对象存储协议"""

    bucket: str

    def exists(self, key: str) -> bool:
        ...

    def put(self, key: str, data: bytes) -> None:
        ...


class S3ObjectStore:
    """基于 boto3 客户端的 S3 对象存储"""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, storage: 'StorageModel', session: Optional[boto3.Session] = None) -> 'S3ObjectStore':
        """根据存储配置创建客户端

        未配置访问密钥时使用 boto3 默认的凭证链。
        """
        if session is None:
            session = boto3.Session(
                aws_access_key_id=storage.aws_key,
                aws_secret_access_key=storage.aws_secret,
                region_name=storage.region,
            )
        if storage.region:
            client = session.client('s3', region_name=storage.region)
        else:
            client = session.client('s3')
        return cls(client, storage.bucket)

    def exists(self, key: str) -> bool:
        """通过 head_object 检查对象是否存在

        Raises:
            StorageError: 除“对象不存在”以外的任何错误
        """
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise StorageError(f"检查对象 's3://{self.bucket}/{key}' 失败: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"检查对象 's3://{self.bucket}/{key}' 失败: {e}") from e

    def put(self, key: str, data: bytes) -> None:
        """单次 put_object 写入

        Raises:
            StorageError: 写入失败
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType="application/zip",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"写入对象 's3://{self.bucket}/{key}' 失败: {e}") from e
        debug(f"已写入 s3://{self.bucket}/{key} ({len(data)} bytes)", stage=LogStage.UPLOAD)


class MemoryObjectStore:
    """内存对象存储，记录每一次调用

    适用于演练（dry run）和测试。
    """

    def __init__(self, bucket: str = "memory", objects: Optional[Dict[str, bytes]] = None):
        self.bucket = bucket
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.calls: List[Tuple[str, str]] = []

    def exists(self, key: str) -> bool:
        self.calls.append(("exists", key))
        return key in self.objects

    def put(self, key: str, data: bytes) -> None:
        self.calls.append(("put", key))
        self.objects[key] = bytes(data)
