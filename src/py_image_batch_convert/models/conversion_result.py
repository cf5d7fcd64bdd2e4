"""转换结果模型。

定义编码结果、单项转换结果、批量结果以及入队结果。
"""

import base64
from typing import Any

from humanize import naturalsize
from pydantic import BaseModel, ConfigDict, Field

from .constants import data_url_header


class EncodedResult(BaseModel):
    """一次成功转换的输出，创建后不可变"""

    model_config = ConfigDict(frozen=True)

    payload: bytes = Field(repr=False, description="编码后的图像字节")
    approximate_byte_size: int = Field(
        description="由 data URL 文本长度估算的字节数，仅为近似值"
    )
    file_extension: str = Field(description="输出扩展名（不含点）")
    mime_type: str = Field(description="输出 MIME 类型")
    width: int = Field(description="输出宽度")
    height: int = Field(description="输出高度")
    quality_used: float = Field(description="实际使用的归一化质量")

    @property
    def byte_size(self) -> int:
        """负载的真实字节数，优先于估算值"""
        return len(self.payload)

    @property
    def data_url(self) -> str:
        """base64 data URL 形式的负载"""
        encoded = base64.b64encode(self.payload).decode("ascii")
        return f"{data_url_header(self.mime_type)}{encoded}"

    def get_size_human(self) -> str:
        return naturalsize(self.byte_size, binary=True)


class BaseResult(BaseModel):
    """结果基类，包含通用字段和方法"""

    success: bool = Field(description="是否成功")
    error: str | None = Field(None, description="错误信息")

    def is_successful(self) -> bool:
        """检查是否成功"""
        return self.success and self.error is None

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """格式化文件大小为人类可读格式"""
        return naturalsize(size_bytes, binary=True)


class ResultCollection(BaseResult):
    """结果集合基类，提供通用的统计方法"""

    results: list[Any] = Field(description="结果列表")

    def get_successful_items(self) -> list[Any]:
        return [r for r in self.results if getattr(r, "success", False)]

    def get_failed_items(self) -> list[Any]:
        return [r for r in self.results if not getattr(r, "success", False)]

    def get_total_count(self) -> int:
        return len(self.results)

    def get_success_count(self) -> int:
        return len(self.get_successful_items())

    def get_failure_count(self) -> int:
        return len(self.get_failed_items())

    def get_success_rate(self) -> float:
        """获取成功率（百分比）"""
        total = self.get_total_count()
        if total == 0:
            return 0.0
        return (self.get_success_count() / total) * 100


class ConversionOutcome(BaseResult):
    """单张图片的转换结果"""

    image_id: str = Field(description="图片 ID")
    display_name: str = Field(description="图片名称")
    error_type: str | None = Field(None, description="错误类型")
    notice: str | None = Field(None, description="面向用户的提示")
    original_size: int = Field(0, description="原始大小（字节）")
    result: EncodedResult | None = Field(None, description="编码结果")

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比），变大时为负值"""
        if self.result is None or self.original_size == 0:
            return 0.0
        return (1 - self.result.byte_size / self.original_size) * 100

    def get_summary(self) -> str:
        if not self.success or self.result is None:
            return f"{self.display_name} 失败: {self.error}"
        return (
            f"{self.display_name}: {self.format_size(self.original_size)} → "
            f"{self.result.get_size_human()} ({self.get_compression_ratio():.1f}% 压缩)"
        )


class BatchOutcome(ResultCollection):
    """一次批量转换的结果"""

    results: list[ConversionOutcome] = Field(description="按队列顺序的单项结果")
    cancelled: bool = Field(False, description="是否被中途取消")

    def get_total_original_size(self) -> int:
        return sum(r.original_size for r in self.results if r.success)

    def get_total_converted_size(self) -> int:
        return sum(r.result.byte_size for r in self.results if r.result is not None)

    def get_summary(self) -> str:
        """批量处理摘要"""
        total = self.get_total_count()
        successful = self.get_success_count()
        summary = (
            f"转换 {successful}/{total} 张图片 "
            f"(成功率 {self.get_success_rate():.1f}%), "
            f"{self.format_size(self.get_total_original_size())} → "
            f"{self.format_size(self.get_total_converted_size())}"
        )
        if self.cancelled:
            summary += "，已取消"
        return summary


class RejectedFile(BaseModel):
    """入队时被拒绝的文件"""

    name: str
    mime_type: str | None = None
    reason: str


class EnqueueResult(BaseModel):
    """一次入队操作的结果"""

    accepted: list[str] = Field(default_factory=list, description="新加入的图片 ID")
    rejected: list[RejectedFile] = Field(
        default_factory=list, description="被拒绝的文件"
    )

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)

    def get_message(self) -> str | None:
        """汇总提示，没有被拒绝的文件时返回 None"""
        if not self.rejected:
            return None
        names = ", ".join(r.name for r in self.rejected)
        return f"已跳过不支持的文件：{names}。支持 JPG, PNG, WebP, GIF, BMP, TIFF"
