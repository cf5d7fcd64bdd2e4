"""打包下载模块。

单张下载直接给出编码负载，批量下载打包为 DEFLATE 最高压缩级别的 zip。
"""

import zipfile
from collections.abc import Iterable
from io import BytesIO
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..config import get_config
from ..exceptions import ConversionStateError, PackagingError
from ..models.queued_image import QueuedImage
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import FileNamingStrategy, PathResolver


logger = get_logger()

ZIP_MIME_TYPE = "application/zip"


class DownloadPayload(BaseModel):
    """交给下载触发器的数据块"""

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(description="建议的文件名")
    data: bytes = Field(repr=False, description="文件内容")
    mime_type: str = Field(description="MIME 类型")

    @property
    def size(self) -> int:
        return len(self.data)


def output_file_name(item: QueuedImage) -> str:
    """已完成图片的下载文件名"""
    if item.encoded_result is None:
        raise ConversionStateError(
            f"图片尚未转换，请先转换: {item.display_name}", item.display_name
        )
    return FileNamingStrategy.generate_output_name(
        item.display_name, item.encoded_result.file_extension
    )


def build_archive(
    entries: Iterable[tuple[str, bytes]], compress_level: int | None = None
) -> bytes:
    """把 (文件名, 内容) 打包为 zip

    重名条目自动追加数字后缀。

    Raises:
        PackagingError: 打包失败
    """
    if compress_level is None:
        compress_level = get_config().packaging.COMPRESS_LEVEL

    entries = list(entries)
    names = FileNamingStrategy.make_unique_names([name for name, _ in entries])

    buffer = BytesIO()
    try:
        with zipfile.ZipFile(
            buffer,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compress_level,
        ) as archive:
            for name, (_, data) in zip(names, entries, strict=True):
                archive.writestr(name, data)
    except (OSError, ValueError, zipfile.LargeZipFile) as e:
        raise PackagingError(f"生成压缩包失败: {e}") from e

    return buffer.getvalue()


class Packager:
    """下载打包器

    busy 在打包期间为 True，失败后总会复位，触发按钮可以再次使用。
    """

    def __init__(self, archive_name: str | None = None):
        self.archive_name = archive_name or get_config().packaging.ARCHIVE_NAME
        self.busy = False

    def single(self, item: QueuedImage) -> DownloadPayload:
        """单张下载，不经过压缩包

        Raises:
            ConversionStateError: 图片尚未转换
        """
        file_name = output_file_name(item)
        result = item.encoded_result
        return DownloadPayload(
            file_name=file_name, data=result.payload, mime_type=result.mime_type
        )

    def archive(self, items: Iterable[QueuedImage]) -> DownloadPayload:
        """把所有已完成的图片打成一个压缩包

        Raises:
            PackagingError: 没有可打包的图片、已有打包在进行或打包失败
        """
        if self.busy:
            raise PackagingError("已有打包任务在进行")

        self.busy = True
        try:
            completed = [item for item in items if item.encoded_result is not None]
            if not completed:
                raise PackagingError("没有已转换的图片可以打包")

            entries = [
                (output_file_name(item), item.encoded_result.payload)
                for item in completed
            ]
            data = build_archive(entries)
            logger.info(f"打包 {len(entries)} 张图片，共 {len(data)} 字节")
            return DownloadPayload(
                file_name=self.archive_name, data=data, mime_type=ZIP_MIME_TYPE
            )
        finally:
            self.busy = False


def save_download(payload: DownloadPayload, output_dir: str | Path) -> Path:
    """把下载内容写入输出目录，已存在同名文件时自动改名

    Raises:
        PackagingError: 写入失败
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        target = PathResolver.ensure_unique_path(output_dir / payload.file_name)
        target.write_bytes(payload.data)
    except OSError as e:
        logger.error(MessageFormatter.operation_failed("保存下载", output_dir, e))
        raise PackagingError(f"保存文件失败: {e}", payload.file_name) from e

    logger.info(f"已保存: {target}")
    return target
