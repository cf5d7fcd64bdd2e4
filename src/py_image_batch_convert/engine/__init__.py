"""批量处理引擎模块。

队列协调与打包下载。
"""

from .coordinator import BatchCoordinator, BatchSession, default_params
from .packaging import (
    DownloadPayload,
    Packager,
    build_archive,
    output_file_name,
    save_download,
)


__all__ = [
    "BatchCoordinator",
    "BatchSession",
    "DownloadPayload",
    "Packager",
    "build_archive",
    "default_params",
    "output_file_name",
    "save_download",
]
