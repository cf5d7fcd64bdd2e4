"""图像编解码能力模块。

封装宿主环境提供的解码、画布绘制与编码能力，默认实现基于 Pillow。
编码结果以 base64 data URL 文本给出，与画布导出的形态一致。
"""

import base64
from io import BytesIO
from typing import Any

from PIL import Image, ImageOps

from ..config import get_config
from ..exceptions import DecodeError, EncodeError, handle_image_errors
from ..models.constants import (
    FormatSpec,
    ImageFormats,
    data_url_header,
)
from ..utils.logging_helpers import get_logger


logger = get_logger()

# 非透明格式的画布底色
WHITE = (255, 255, 255)
TRANSPARENT = (0, 0, 0, 0)


class ImageCodec:
    """基于 Pillow 的编解码能力"""

    def __init__(self, max_image_pixels: int | None = None) -> None:
        self.max_image_pixels = (
            max_image_pixels or get_config().conversion.MAX_IMAGE_PIXELS
        )

    @handle_image_errors("图像解码")
    def decode(self, data: bytes) -> Image.Image:
        """解码源字节，按 EXIF 方向摆正

        Raises:
            DecodeError: 数据为空或无法解码
        """
        if not data:
            raise DecodeError("源数据为空")

        with Image.open(BytesIO(data)) as img:
            width, height = img.size
            if width * height > self.max_image_pixels:
                raise DecodeError(
                    f"图像像素数 {width * height} 超过限制 {self.max_image_pixels}"
                )
            img.load()
            return ImageOps.exif_transpose(img)

    def render(
        self, img: Image.Image, size: tuple[int, int], alpha_canvas: bool
    ) -> Image.Image:
        """把源图缩放绘制到目标画布

        Args:
            img: 源图
            size: 画布尺寸
            alpha_canvas: True 时使用透明画布，否则先铺白色底
        """
        source = img.convert("RGBA")
        if source.size != size:
            source = source.resize(size, Image.Resampling.LANCZOS)

        if alpha_canvas:
            canvas = Image.new("RGBA", size, TRANSPARENT)
            return Image.alpha_composite(canvas, source)

        canvas = Image.new("RGB", size, WHITE)
        canvas.paste(source, mask=source.getchannel("A"))
        return canvas

    def encode(self, canvas: Image.Image, spec: FormatSpec, quality: float) -> str:
        """把画布编码为 data URL

        Args:
            canvas: 已绘制的画布
            spec: 目标格式
            quality: 归一化质量，仅对支持有损质量的格式生效

        Raises:
            EncodeError: 编码器拒绝参数或输出为空
        """
        params = get_save_parameters(spec, quality)
        try:
            payload = self._save(canvas, spec, params)
        except (OSError, ValueError, KeyError) as e:
            if spec.pil_format == "TIFF" and "compression" in params:
                # 部分 libtiff 构建不支持 JPEG 压缩，退回默认编码
                logger.warning(f"TIFF JPEG 压缩不可用，使用默认编码: {e}")
                payload = self._save_or_raise(canvas, spec, {})
            else:
                raise EncodeError(f"{spec.pil_format} 编码失败: {e}") from e

        if not payload:
            raise EncodeError(f"{spec.pil_format} 编码器返回空结果")

        encoded = base64.b64encode(payload).decode("ascii")
        return f"{data_url_header(spec.mime_type)}{encoded}"

    def identify(self, payload: bytes) -> str | None:
        """识别编码结果的实际 MIME 类型，无法识别时返回 None"""
        try:
            with Image.open(BytesIO(payload)) as img:
                return ImageFormats.get_mime_type(img.format) if img.format else None
        except (OSError, ValueError) as e:
            logger.debug(f"无法识别编码结果: {e}")
            return None

    def _save(
        self, canvas: Image.Image, spec: FormatSpec, params: dict[str, Any]
    ) -> bytes:
        buffer = BytesIO()
        canvas.save(buffer, format=spec.pil_format, **params)
        return buffer.getvalue()

    def _save_or_raise(
        self, canvas: Image.Image, spec: FormatSpec, params: dict[str, Any]
    ) -> bytes:
        try:
            return self._save(canvas, spec, params)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"{spec.pil_format} 编码失败: {e}") from e


def get_save_parameters(spec: FormatSpec, quality: float) -> dict[str, Any]:
    """获取保存参数

    不支持有损质量的格式使用编码器默认参数。
    """
    if not spec.quality_support:
        return {}

    pil_quality = max(0, min(100, round(quality * 100)))

    match spec.pil_format:
        case "JPEG":
            return {"quality": pil_quality, "optimize": True}
        case "WEBP":
            return {"quality": pil_quality, "method": 6}
        case "TIFF":
            # TIFF 的质量只在 JPEG 压缩下有意义
            return {"compression": "jpeg", "quality": pil_quality}
        case _:
            return {"quality": pil_quality}


_default_codec: ImageCodec | None = None


def get_default_codec() -> ImageCodec:
    """获取共享的默认编解码器"""
    global _default_codec
    if _default_codec is None:
        _default_codec = ImageCodec()
    return _default_codec


def probe_supported_formats(codec: ImageCodec | None = None) -> frozenset[str]:
    """探测宿主环境实际能编码的格式

    对注册表中每种格式做一次 1×1 试编码，输出的声明类型与实际类型都匹配才
    视为支持。探测失败只会让该格式被移除，不会抛出异常。
    """
    codec = codec or get_default_codec()
    probe = Image.new("RGBA", (1, 1), (255, 0, 0, 255))
    supported = set()

    for mime_type, spec in ImageFormats.REGISTRY.items():
        header = data_url_header(mime_type)
        try:
            canvas = codec.render(probe, (1, 1), spec.alpha_canvas)
            data_url = codec.encode(canvas, spec, 1.0)
        except (EncodeError, OSError, ValueError) as e:
            logger.info(f"格式 {mime_type} 不可用: {e}")
            continue

        if not data_url.startswith(header):
            logger.info(f"格式 {mime_type} 不可用: 编码器返回了其他类型")
            continue

        try:
            payload = base64.b64decode(data_url[len(header) :], validate=True)
        except ValueError as e:
            logger.info(f"格式 {mime_type} 不可用: 负载无效 {e}")
            continue

        if codec.identify(payload) != mime_type:
            logger.info(f"格式 {mime_type} 不可用: 输出无法按该类型读取")
            continue

        supported.add(mime_type)

    logger.debug(f"可用的输出格式: {sorted(supported)}")
    return frozenset(supported)
