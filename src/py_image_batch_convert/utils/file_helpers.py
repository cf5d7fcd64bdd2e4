"""本地文件读取工具。

把本地路径转换为文件选择面提供的 (字节, MIME 类型, 文件名) 元组。
"""

from collections.abc import Iterable
from io import BytesIO
from pathlib import Path

from PIL import Image

from ..models.constants import ImageFormats, mime_for_extension
from ..models.conversion_result import RejectedFile
from ..models.queued_image import SourceFile
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def sniff_mime_type(data: bytes) -> str | None:
    """从内容识别 MIME 类型，失败时返回 None"""
    try:
        with Image.open(BytesIO(data)) as img:
            return ImageFormats.get_mime_type(img.format) if img.format else None
    except (OSError, ValueError) as e:
        logger.debug(f"无法识别文件内容: {e}")
        return None


def read_source_file(path: str | Path) -> SourceFile:
    """读取单个本地文件

    声明类型按扩展名推断，与浏览器文件选择的行为一致；没有可识别的扩展名时
    再根据内容识别。

    Raises:
        FileNotFoundError: 文件不存在
    """
    path = Path(path)
    data = path.read_bytes()
    mime_type = mime_for_extension(path.suffix) if path.suffix else None
    if mime_type is None:
        mime_type = sniff_mime_type(data)
    return SourceFile(data=data, mime_type=mime_type or "", name=path.name)


def load_source_files(
    paths: Iterable[str | Path],
) -> tuple[list[SourceFile], list[RejectedFile]]:
    """批量读取本地文件

    Returns:
        tuple: (读取成功的文件, 无法读取的文件)
    """
    files: list[SourceFile] = []
    unreadable: list[RejectedFile] = []

    for raw_path in paths:
        path = Path(raw_path)
        try:
            if not path.is_file():
                raise FileNotFoundError(MessageFormatter.file_not_found(path))
            files.append(read_source_file(path))
        except OSError as e:
            logger.warning(MessageFormatter.operation_failed("读取文件", path, e))
            unreadable.append(RejectedFile(name=path.name, reason=str(e)))

    return files, unreadable
