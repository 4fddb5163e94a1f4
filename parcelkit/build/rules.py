"""
路径规则解析器

维护包含/排除规则列表，并将规则条目相对于基准目录解析为绝对路径。

规则条目的写法：
    - 普通相对路径或绝对路径
    - 以 ``!`` 开头的取反路径：传给 include 时转入排除列表；传给 exclude 时
      仅去掉前缀，依旧是排除（不支持“双重取反”重新包含）
    - ``*``：基准目录下的全部内容
    - 排除条目中包含 ``*``、``?``、``[`` 的视为 glob 模式
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..utils.logging import debug, LogStage
from ..utils.paths import default_base_path, expand_path, join_base
from .errors import PackageError

NEGATION_MARKER = '!'
WILDCARD = '*'
GLOB_CHARS = ('*', '?', '[')

RuleEntry = Union[str, Path]
RuleInput = Union[RuleEntry, Iterable[RuleEntry]]


def iter_entries(entries: Optional[RuleInput]) -> List[str]:
    """把单个条目或条目序列展开为字符串列表

    只丢弃空条目；首尾空白是文件名的一部分，原样保留。
    """
    if entries is None:
        return []
    if isinstance(entries, (str, Path)):
        entries = [entries]

    result = []
    for entry in entries:
        text = str(entry)
        if text:
            result.append(text)
    return result


def is_glob(entry: str) -> bool:
    """判断排除条目是否为 glob 模式（单独的 ``*`` 不算）"""
    if entry == WILDCARD:
        return False
    return any(char in entry for char in GLOB_CHARS)


class PathRules:
    """包含/排除规则集合

    基准目录按以下优先级解析，首次访问时计算并缓存：
    显式设置 > 配置覆盖 > 默认项目根目录（当前工作目录）。
    """

    def __init__(
        self,
        base_path: Optional[Union[str, Path]] = None,
        configured_base_path: Optional[Union[str, Path]] = None,
    ):
        self._explicit_base_path: Optional[Path] = expand_path(base_path) if base_path else None
        self._configured_base_path: Optional[Path] = (
            expand_path(configured_base_path) if configured_base_path else None
        )
        self._base_path: Optional[Path] = None
        self._locked = False

        self.includes: List[str] = []
        self.excludes: List[str] = []

    # ---- 基准目录 ----

    def set_base_path(self, path: Union[str, Path]) -> None:
        """显式设置基准目录

        Raises:
            PackageError: 文件集合已经生成过，基准目录不可再修改
        """
        if self._locked:
            raise PackageError("文件集合已生成，不能再修改基准目录")
        self._explicit_base_path = expand_path(path)
        self._base_path = None

    def get_base_path(self) -> Path:
        if self._base_path is None:
            if self._explicit_base_path is not None:
                self._base_path = self._explicit_base_path
            elif self._configured_base_path is not None:
                self._base_path = self._configured_base_path
            else:
                self._base_path = default_base_path()
            debug(f"基准目录: {self._base_path}", stage=LogStage.RESOLVE)
        return self._base_path

    def lock(self) -> None:
        """锁定基准目录（文件集合生成时调用）"""
        self.get_base_path()
        self._locked = True

    # ---- 规则 ----

    def include(self, entries: RuleInput) -> None:
        for entry in iter_entries(entries):
            if entry.startswith(NEGATION_MARKER):
                self._append_exclude(entry)
            else:
                self.includes.append(entry)

    def exclude(self, entries: RuleInput) -> None:
        for entry in iter_entries(entries):
            self._append_exclude(entry)

    def _append_exclude(self, entry: str) -> None:
        stripped = entry.lstrip(NEGATION_MARKER)
        if stripped:
            self.excludes.append(stripped)

    # ---- 解析 ----

    def resolve(self, entry: str) -> Path:
        """把单条规则解析为绝对路径"""
        base_path = self.get_base_path()
        if entry == WILDCARD:
            return base_path
        return join_base(base_path, entry)

    def get_included_paths(self) -> List[Path]:
        return [self.resolve(entry) for entry in self.includes]

    def get_excluded_paths(self) -> List[Path]:
        return [self.resolve(entry) for entry in self.excludes]

    def get_excluded_roots(self) -> List[Path]:
        """普通（非 glob）排除路径：等于该路径或位于其下的文件都被排除"""
        return [self.resolve(entry) for entry in self.excludes if not is_glob(entry)]

    def get_excluded_patterns(self) -> List[str]:
        """glob 排除模式，已拼接为绝对 POSIX 形式"""
        return [self.resolve(entry).as_posix() for entry in self.excludes if is_glob(entry)]
