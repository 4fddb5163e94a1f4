"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    set_log_file,
    set_log_level,
    OutputLevel,
    StageLogger,
    LogStage,
)

from .paths import (
    default_base_path,
    expand_path,
    format_size,
    is_within,
    join_base,
    normalize_archive_name,
    to_archive_name,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "set_log_file",
    "set_log_level",
    "OutputLevel",
    "StageLogger",
    "LogStage",

    # 路径相关
    "default_base_path",
    "expand_path",
    "format_size",
    "is_within",
    "join_base",
    "normalize_archive_name",
    "to_archive_name",
]
