"""转换参数模型。

用户选择的目标格式、尺寸与质量，对管线只读。
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import ImageFormats, is_supported_mime


class ConversionParams(BaseModel):
    """单次转换调用统一使用的参数"""

    model_config = ConfigDict(frozen=True)

    target_format: str = Field(description="目标 MIME 类型")
    target_width: int = Field(gt=0, description="目标宽度（像素）")
    target_height: int = Field(gt=0, description="目标高度（像素）")
    lock_aspect_ratio: bool = Field(True, description="锁定源图宽高比")
    quality: int = Field(80, ge=0, le=100, description="质量滑块值 0-100")

    @field_validator("target_format")
    @classmethod
    def validate_target_format(cls, v: str) -> str:
        v = v.strip().lower()
        if not is_supported_mime(v):
            raise ValueError(
                f"不支持的目标格式: {v}，可选: {', '.join(ImageFormats.mime_types())}"
            )
        return v

    @property
    def supports_quality(self) -> bool:
        """目标格式是否接受有损质量参数"""
        return ImageFormats.REGISTRY[self.target_format].quality_support

    @property
    def normalized_quality(self) -> float:
        """归一化到 [0, 1] 的质量；不支持质量的格式恒为 1.0"""
        if not self.supports_quality:
            return 1.0
        return self.quality / 100

    @property
    def requested_size(self) -> tuple[int, int]:
        return self.target_width, self.target_height
