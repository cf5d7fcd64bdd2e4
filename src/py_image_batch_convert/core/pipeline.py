"""转换管线模块。

把一张源图和一组转换参数变成一个 EncodedResult，不修改队列项。
"""

import base64
import binascii

from ..exceptions import EncodeError
from ..models.constants import data_url_header, get_format_spec
from ..models.conversion_params import ConversionParams
from ..models.conversion_result import EncodedResult
from ..utils.logging_helpers import get_logger
from .codec import ImageCodec, get_default_codec
from .dimensions import compute_target_dimensions


logger = get_logger()


def convert_image(
    source_bytes: bytes,
    params: ConversionParams,
    codec: ImageCodec | None = None,
) -> EncodedResult:
    """转换单张图片。

    Args:
        source_bytes: 源图字节
        params: 转换参数
        codec: 编解码能力，默认使用 Pillow 实现

    Returns:
        EncodedResult: 编码结果

    Raises:
        DecodeError: 源数据无法解码
        EncodeError: 编码器拒绝该格式或返回空/无效结果
    """
    codec = codec or get_default_codec()
    spec = get_format_spec(params.target_format)

    img = codec.decode(source_bytes)
    width, height = compute_target_dimensions(
        img.size, params.requested_size, params.lock_aspect_ratio
    )

    canvas = codec.render(img, (width, height), spec.alpha_canvas)
    quality = params.normalized_quality
    data_url = codec.encode(canvas, spec, quality)

    header = data_url_header(spec.mime_type)
    payload = _extract_payload(data_url, header)
    approximate_size = estimate_encoded_size(data_url, len(header))

    logger.debug(
        f"转换完成: {img.size} → {(width, height)}, {spec.mime_type}, "
        f"质量={quality}, 约 {approximate_size} 字节"
    )

    return EncodedResult(
        payload=payload,
        approximate_byte_size=approximate_size,
        file_extension=spec.extension,
        mime_type=spec.mime_type,
        width=width,
        height=height,
        quality_used=quality,
    )


def estimate_encoded_size(data_url: str, header_length: int) -> int:
    """由 base64 文本长度估算负载字节数

    每 4 个 base64 字符对应 3 个字节，填充字符会让估算略大于真实值，
    能拿到负载本身时以 EncodedResult.byte_size 为准。
    """
    return round((len(data_url) - header_length) * 3 / 4)


def _extract_payload(data_url: str, header: str) -> bytes:
    """校验 data URL 的声明类型并解出负载"""
    if not data_url.startswith(header):
        declared = data_url.split(";", 1)[0].removeprefix("data:") or "未知"
        raise EncodeError(f"编码器不支持目标格式，实际输出类型: {declared}")

    try:
        payload = base64.b64decode(data_url[len(header) :], validate=True)
    except binascii.Error as e:
        raise EncodeError(f"编码结果不是有效的 base64 数据: {e}") from e

    if not payload:
        raise EncodeError("编码器返回空结果")
    return payload
