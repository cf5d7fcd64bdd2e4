"""数据模型包。

定义队列项、转换参数、格式注册表和结果类型。
"""

from .constants import (
    FormatSpec,
    ImageFormats,
    data_url_header,
    get_format_spec,
    is_supported_mime,
    mime_for_extension,
)
from .conversion_params import ConversionParams
from .conversion_result import (
    BatchOutcome,
    ConversionOutcome,
    EncodedResult,
    EnqueueResult,
    RejectedFile,
)
from .queued_image import ImageStatus, QueuedImage, SourceFile


__all__ = [
    "BatchOutcome",
    "ConversionOutcome",
    "ConversionParams",
    "EncodedResult",
    "EnqueueResult",
    "FormatSpec",
    "ImageFormats",
    "ImageStatus",
    "QueuedImage",
    "RejectedFile",
    "SourceFile",
    "data_url_header",
    "get_format_spec",
    "is_supported_mime",
    "mime_for_extension",
]
