"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

from .file_helpers import load_source_files, read_source_file, sniff_mime_type
from .logging_helpers import configure_logging, get_logger
from .message_formatter import MessageFormatter
from .naming_helpers import FileNamingStrategy, PathResolver


__all__ = [
    "FileNamingStrategy",
    "MessageFormatter",
    "PathResolver",
    "configure_logging",
    "get_logger",
    "load_source_files",
    "read_source_file",
    "sniff_mime_type",
]
