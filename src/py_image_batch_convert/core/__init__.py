"""核心模块包。

转换管线、尺寸计算与编解码能力。
"""

from .codec import ImageCodec, get_default_codec, probe_supported_formats
from .dimensions import compute_target_dimensions
from .pipeline import convert_image, estimate_encoded_size


__all__ = [
    "ImageCodec",
    "compute_target_dimensions",
    "convert_image",
    "estimate_encoded_size",
    "get_default_codec",
    "probe_supported_formats",
]
