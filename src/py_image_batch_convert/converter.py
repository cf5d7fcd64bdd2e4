"""批量图像转换器接口。

把队列协调器、打包器和本地文件读取组合成一个会话级别的简洁接口。
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .engine.coordinator import BatchCoordinator, BatchSession
from .engine.packaging import DownloadPayload, Packager, save_download
from .exceptions import ErrorHandler, ImageBatchError, PackagingError, ValidationError
from .models import BatchOutcome, ConversionOutcome, EnqueueResult, SourceFile
from .utils.file_helpers import load_source_files
from .utils.logging_helpers import get_logger


logger = get_logger()


class ImageBatchConverter:
    """批量图像转换器。

    一个实例对应一次会话：队列只保存在内存中。

    Examples:
        >>> converter = ImageBatchConverter()
        >>> converter.add_files(["photo.jpg", "logo.png"])
        >>> converter.convert(target_format="image/webp", quality=75)
        >>> converter.export("out/")
    """

    def __init__(
        self,
        coordinator: BatchCoordinator | None = None,
        packager: Packager | None = None,
    ):
        self.coordinator = coordinator or BatchCoordinator(BatchSession())
        self.packager = packager or Packager()
        logger.debug("初始化批量图像转换器")

    @property
    def session(self) -> BatchSession:
        return self.coordinator.session

    def add_sources(self, sources: Iterable[SourceFile]) -> EnqueueResult:
        """加入已在内存中的文件"""
        return self.coordinator.enqueue(sources)

    def add_files(self, paths: Iterable[str | Path]) -> EnqueueResult:
        """读取本地文件并加入队列，无法读取的文件与不支持的文件一起报告"""
        sources, unreadable = load_source_files(paths)
        result = self.coordinator.enqueue(sources)
        result.rejected.extend(unreadable)
        return result

    def convert(
        self, image_id: str | None = None, **param_changes: Any
    ) -> BatchOutcome | ConversionOutcome:
        """按给定参数转换单张或全部图片

        Args:
            image_id: 指定时只转换该图片，否则转换全部未完成的图片
            **param_changes: ConversionParams 字段，如 target_format、quality

        Raises:
            ValidationError: 参数不合法
        """
        if image_id is None:
            if param_changes:
                self.coordinator.update_params(**param_changes)
            return self.coordinator.convert_all()

        try:
            # 先确认图片存在，找不到时不改动会话参数
            item = self.coordinator.get(image_id)
            if param_changes:
                self.coordinator.update_params(**param_changes)
            result = self.coordinator.convert_one(image_id)
        except ValidationError:
            raise
        except ImageBatchError as e:
            name = e.item_name or image_id
            return ErrorHandler.handle_conversion_error(e, image_id, name, "单张转换")

        return ConversionOutcome(
            image_id=item.id,
            display_name=item.display_name,
            success=True,
            original_size=item.original_size,
            result=result,
        )

    def download(self, image_id: str | None = None) -> DownloadPayload:
        """生成下载内容：指定图片时返回单个文件，否则返回压缩包

        Raises:
            NotFoundError: ID 不在队列中
            ConversionStateError: 指定的图片尚未转换
            PackagingError: 批量下载时仍有未完成的图片或打包失败
        """
        if image_id is not None:
            return self.packager.single(self.coordinator.get(image_id))

        if not self.coordinator.all_completed():
            raise PackagingError("还有图片未完成转换，暂不能打包下载")
        return self.packager.archive(self.coordinator.items)

    def export(self, output_dir: str | Path, image_id: str | None = None) -> Path:
        """生成下载内容并写入输出目录"""
        return save_download(self.download(image_id), output_dir)
