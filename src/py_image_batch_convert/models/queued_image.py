"""队列图片模型。

定义输入文件元组和批量协调器持有的队列项。
"""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .conversion_result import EncodedResult


class ImageStatus(str, Enum):
    """队列项状态"""

    PENDING = "pending"
    COMPLETED = "completed"


class SourceFile(BaseModel):
    """文件选择面提供的原始文件"""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False, description="原始字节")
    mime_type: str = Field(description="声明的 MIME 类型")
    name: str = Field(description="文件名")

    @property
    def size(self) -> int:
        return len(self.data)


class QueuedImage(BaseModel):
    """等待或已完成转换的单张图片"""

    id: str = Field(default_factory=lambda: uuid4().hex, description="会话内唯一 ID")
    display_name: str = Field(description="显示名称")
    source_bytes: bytes = Field(repr=False, description="源图字节")
    original_format: str = Field(description="源 MIME 类型")
    status: ImageStatus = Field(ImageStatus.PENDING, description="转换状态")
    encoded_result: EncodedResult | None = Field(None, description="转换结果")

    @model_validator(mode="after")
    def validate_completion(self) -> "QueuedImage":
        if (self.status == ImageStatus.COMPLETED) != (self.encoded_result is not None):
            raise ValueError("status 为 completed 当且仅当存在 encoded_result")
        return self

    @classmethod
    def from_source(cls, source: SourceFile) -> "QueuedImage":
        return cls(
            display_name=source.name,
            source_bytes=source.data,
            original_format=source.mime_type.lower(),
        )

    @property
    def original_size(self) -> int:
        """源文件大小（字节）"""
        return len(self.source_bytes)

    @property
    def is_completed(self) -> bool:
        return self.status == ImageStatus.COMPLETED

    def mark_completed(self, result: EncodedResult) -> None:
        """执行唯一一次 pending → completed 迁移

        Raises:
            ConversionStateError: 图片已完成
        """
        if self.is_completed:
            from ..exceptions import ConversionStateError

            raise ConversionStateError(
                f"图片已完成转换，不能重复标记: {self.display_name}",
                self.display_name,
            )
        # 先写结果再改状态，两步之间不触发校验
        self.encoded_result = result
        self.status = ImageStatus.COMPLETED

    def get_summary(self) -> str:
        """队列项摘要"""
        from humanize import naturalsize

        original = naturalsize(self.original_size, binary=True)
        if self.encoded_result is None:
            return f"{self.display_name}: {original}，待转换"
        return f"{self.display_name}: {original} → {self.encoded_result.get_size_human()}"
