"""图像格式注册表。

固定的六种输入/输出格式及其编码能力，供转换管线和批量协调器共同读取。
"""

from types import MappingProxyType
from typing import Final

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field


class FormatSpec(BaseModel):
    """单个格式的静态描述"""

    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(description="MIME 类型")
    extension: str = Field(description="输出文件扩展名（不含点）")
    pil_format: str = Field(description="Pillow 格式名")
    quality_support: bool = Field(description="编码器是否接受有损质量参数")
    alpha_canvas: bool = Field(description="是否在透明画布上绘制")
    description: str = Field(default="", description="格式说明")


class ImageFormats:
    """格式注册表，键为 MIME 类型，运行期只读"""

    REGISTRY: Final = MappingProxyType(
        {
            "image/jpeg": FormatSpec(
                mime_type="image/jpeg",
                extension="jpg",
                pil_format="JPEG",
                quality_support=True,
                alpha_canvas=False,
                description="照片首选，体积小",
            ),
            "image/png": FormatSpec(
                mime_type="image/png",
                extension="png",
                pil_format="PNG",
                quality_support=False,
                alpha_canvas=True,
                description="无损，保留透明背景",
            ),
            "image/webp": FormatSpec(
                mime_type="image/webp",
                extension="webp",
                pil_format="WEBP",
                quality_support=True,
                alpha_canvas=False,
                description="压缩率高的现代格式",
            ),
            "image/gif": FormatSpec(
                mime_type="image/gif",
                extension="gif",
                pil_format="GIF",
                quality_support=False,
                alpha_canvas=True,
                description="调色板格式，适合简单图形",
            ),
            "image/bmp": FormatSpec(
                mime_type="image/bmp",
                extension="bmp",
                pil_format="BMP",
                quality_support=False,
                alpha_canvas=False,
                description="未压缩位图",
            ),
            "image/tiff": FormatSpec(
                mime_type="image/tiff",
                extension="tiff",
                pil_format="TIFF",
                quality_support=True,
                alpha_canvas=False,
                description="专业印刷常用格式",
            ),
        }
    )

    # 只定义 Pillow 格式名与注册表 MIME 不一致的情况
    SPECIAL_MIME_TYPES: Final[dict[str, str]] = {
        "ICO": "image/x-icon",
        "PPM": "image/x-portable-pixmap",
    }

    @classmethod
    def mime_types(cls) -> list[str]:
        """按注册顺序返回所有 MIME 类型"""
        return list(cls.REGISTRY)

    @classmethod
    def get_mime_type(cls, pil_format: str) -> str:
        """由 Pillow 格式名得到 MIME 类型"""
        format_upper = pil_format.upper()
        if format_upper in cls.SPECIAL_MIME_TYPES:
            return cls.SPECIAL_MIME_TYPES[format_upper]
        for spec in cls.REGISTRY.values():
            if spec.pil_format == format_upper:
                return spec.mime_type
        return f"image/{format_upper.lower()}"


def is_supported_mime(mime_type: str | None) -> bool:
    """检查 MIME 类型是否在注册表中"""
    return mime_type is not None and mime_type.lower() in ImageFormats.REGISTRY


def get_format_spec(mime_type: str) -> FormatSpec:
    """获取格式描述

    Raises:
        UnsupportedFormatError: 格式不在注册表中
    """
    spec = ImageFormats.REGISTRY.get(mime_type.lower()) if mime_type else None
    if spec is None:
        from ..exceptions import UnsupportedFormatError

        raise UnsupportedFormatError(f"不支持的格式: {mime_type}")
    return spec


def mime_for_extension(suffix: str) -> str | None:
    """根据文件扩展名推断声明的 MIME 类型，使用 Pillow 的扩展名注册表"""
    pil_format = Image.registered_extensions().get(suffix.lower())
    if not pil_format:
        return None
    return ImageFormats.get_mime_type(pil_format)


def data_url_header(mime_type: str) -> str:
    """data URL 中负载之前的固定前缀"""
    return f"data:{mime_type};base64,"
