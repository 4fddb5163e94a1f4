"""
配置 Schema 定义

使用 Pydantic 定义 YAML 配置模型，涵盖存储目标、打包规则、压缩与哈希设置。
"""

from __future__ import annotations

import hashlib
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class StorageModel(BaseModel):
    """对象存储配置模型"""
    bucket: str = Field(..., description="存储桶名称", min_length=3, max_length=63)
    region: Optional[str] = Field(None, description="存储桶所在区域")
    aws_key: Optional[str] = Field(None, description="访问密钥 ID")
    aws_secret: Optional[str] = Field(None, description="访问密钥")

    @model_validator(mode='after')
    def validate_credentials(self) -> 'StorageModel':
        """访问密钥必须成对出现"""
        if bool(self.aws_key) != bool(self.aws_secret):
            raise ValueError("aws_key 和 aws_secret 必须同时设置或同时省略")
        return self


class PackageModel(BaseModel):
    """打包规则配置模型"""
    base_path: Optional[Union[str, Path]] = Field(None, description="打包基准目录（覆盖默认的项目根目录）")
    namespace: str = Field("parcelkit", description="对象键的命名空间前缀", min_length=1)
    sequence: int = Field(1, description="对象键中的序号", ge=0, le=999)
    include: List[str] = Field(default_factory=list, description="包含规则列表")
    exclude: List[str] = Field(default_factory=list, description="排除规则列表")
    include_exactly: Dict[str, str] = Field(default_factory=dict, description="源文件到归档名称的精确映射")

    @field_validator('base_path')
    @classmethod
    def validate_base_path(cls, v: Optional[Union[str, Path]]) -> Optional[Path]:
        if v is None:
            return None
        if not str(v).strip():
            raise ValueError("base_path 不能为空字符串")
        return Path(v)

    @field_validator('namespace')
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        cleaned = v.strip().strip('/')
        if not cleaned:
            raise ValueError("命名空间不能只包含斜杠")
        return cleaned


class CompressionModel(BaseModel):
    """压缩配置模型（zip deflate 级别）"""
    level: int = Field(6, description="压缩级别", ge=0, le=9)


class HashModel(BaseModel):
    """指纹哈希配置模型"""
    algorithm: str = Field("md5", description="hashlib 支持的哈希算法名称")

    @field_validator('algorithm')
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        algorithm = v.strip().lower()
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {v}")
        # 变长摘要（shake_*）需要额外长度参数
        if algorithm.startswith('shake_'):
            raise ValueError(f"不支持变长摘要算法: {v}")
        return algorithm


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class ParcelConfig(BaseModel):
    """parcelkit 主配置模型"""

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")
    storage: StorageModel = Field(..., description="对象存储配置")
    package: PackageModel = Field(default_factory=PackageModel, description="打包规则")
    compression: CompressionModel = Field(default_factory=CompressionModel, description="压缩配置")
    hash: HashModel = Field(default_factory=HashModel, description="指纹配置")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        """转换为可直接写入 YAML 的字典"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, Enum):
                return obj.value
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParcelConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
