"""文件命名工具模块。

下载文件名生成、压缩包内重名处理和输出路径去重。
"""

import itertools
import re
from pathlib import Path, PurePath

from ..config import get_config


_EXTENSION_RE = re.compile(r"\.[^/.]+$")


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def base_name(display_name: str) -> str:
        """去掉目录部分和最后一个扩展名

        只去掉点后至少有一个字符的扩展名，"a." 保持不变，".hidden" 变为空串。
        """
        return _EXTENSION_RE.sub("", PurePath(display_name).name)

    @staticmethod
    def generate_output_name(
        display_name: str, extension: str, suffix: str | None = None
    ) -> str:
        """生成 `<原文件名>_compressed.<扩展名>` 形式的下载名

        Args:
            display_name: 原始文件名
            extension: 输出扩展名（不含点）
            suffix: 自定义后缀，默认取配置中的 OUTPUT_SUFFIX
        """
        if suffix is None:
            suffix = get_config().packaging.OUTPUT_SUFFIX
        return f"{FileNamingStrategy.base_name(display_name)}{suffix}.{extension}"

    @staticmethod
    def make_unique_names(names: list[str]) -> list[str]:
        """为重名项追加 _1、_2 后缀，保持顺序"""
        used: set[str] = set()
        unique = []
        for name in names:
            candidate = name
            if candidate in used:
                path = PurePath(name)
                for counter in itertools.count(1):
                    candidate = f"{path.stem}_{counter}{path.suffix}"
                    if candidate not in used:
                        break
            used.add(candidate)
            unique.append(candidate)
        return unique


class PathResolver:
    """路径解析器"""

    @staticmethod
    def ensure_unique_path(path: Path) -> Path:
        """确保路径唯一，如果文件已存在则添加数字后缀"""
        if not path.exists():
            return path

        base = path.stem
        suffix = path.suffix
        parent = path.parent

        for counter in itertools.count(1):
            new_path = parent / f"{base}_{counter}{suffix}"
            if not new_path.exists():
                return new_path

        return path  # pragma: no cover
