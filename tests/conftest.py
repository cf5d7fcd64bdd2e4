"""测试配置文件。

提供内存中生成的测试图片和通用的 fixtures。
"""

from io import BytesIO

import pytest
from PIL import Image, ImageDraw

from py_image_batch_convert.config import reset_config
from py_image_batch_convert.models import (
    ConversionParams,
    EncodedResult,
    ImageFormats,
    SourceFile,
)


def make_image_bytes(
    pil_format: str = "JPEG",
    size: tuple[int, int] = (800, 600),
    mode: str = "RGB",
    color: tuple[int, ...] | str = "white",
) -> bytes:
    """生成带简单图形的测试图片字节"""
    img = Image.new(mode, size, color=color)
    draw = ImageDraw.Draw(img)
    width, height = size
    for i in range(10):
        x, y = (i * width) // 10, (i * height) // 10
        fill = (i * 25 % 256, 100 + i * 15 % 156, i * 11 % 256)
        if mode == "RGBA":
            fill = (*fill, 255)
        draw.rectangle([x, y, x + width // 8, y + height // 8], fill=fill)

    buffer = BytesIO()
    img.save(buffer, format=pil_format)
    return buffer.getvalue()


def make_noise_bytes(size: tuple[int, int] = (256, 256)) -> bytes:
    """生成噪声图，用于比较不同质量下的体积"""
    img = Image.merge(
        "RGB", [Image.effect_noise(size, 60) for _ in range(3)]
    )
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def make_encoded_result(payload: bytes = b"payload", **overrides) -> EncodedResult:
    """构造一个编码结果"""
    fields = {
        "payload": payload,
        "approximate_byte_size": len(payload),
        "file_extension": "jpg",
        "mime_type": "image/jpeg",
        "width": 10,
        "height": 10,
        "quality_used": 0.8,
    }
    fields.update(overrides)
    return EncodedResult(**fields)


def make_source(
    name: str = "photo.jpg", mime_type: str = "image/jpeg", data: bytes | None = None
) -> SourceFile:
    return SourceFile(
        data=data if data is not None else name.encode(), mime_type=mime_type, name=name
    )


class SpyConverter:
    """记录调用并检查并发度的转换函数"""

    def __init__(self, fail_on: set[bytes] | None = None):
        self.fail_on = fail_on or set()
        self.calls: list[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def __call__(self, source_bytes: bytes, params: ConversionParams) -> EncodedResult:
        from py_image_batch_convert.exceptions import EncodeError

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append(source_bytes)
            if source_bytes in self.fail_on:
                raise EncodeError("编码器拒绝")
            spec = ImageFormats.REGISTRY[params.target_format]
            return make_encoded_result(
                payload=b"converted:" + source_bytes,
                file_extension=spec.extension,
                mime_type=spec.mime_type,
            )
        finally:
            self.in_flight -= 1


@pytest.fixture(autouse=True)
def fresh_config():
    """每个测试使用干净的全局配置"""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def jpeg_800x600() -> bytes:
    return make_image_bytes("JPEG", (800, 600))


@pytest.fixture
def transparent_png() -> bytes:
    """左半透明、右半红色的 PNG"""
    img = Image.new("RGBA", (200, 100), color=(0, 0, 0, 0))
    ImageDraw.Draw(img).rectangle([100, 0, 199, 99], fill=(255, 0, 0, 255))
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_params() -> ConversionParams:
    return ConversionParams(
        target_format="image/png",
        target_width=400,
        target_height=400,
        lock_aspect_ratio=True,
        quality=80,
    )
