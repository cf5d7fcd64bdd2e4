"""浏览器式批量图像转换库。

加载多张图片，按统一的格式、尺寸与质量逐张重新编码，单张或打包下载。
"""

__version__ = "0.1.0"
__description__ = "批量图像格式转换与打包下载，基于 Pillow"

from .converter import ImageBatchConverter
from .core.pipeline import convert_image
from .engine.coordinator import BatchCoordinator, BatchSession
from .models import ConversionParams, EncodedResult, QueuedImage, SourceFile


__all__ = [
    "BatchCoordinator",
    "BatchSession",
    "ConversionParams",
    "EncodedResult",
    "ImageBatchConverter",
    "QueuedImage",
    "SourceFile",
    "convert_image",
    "get_version",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
