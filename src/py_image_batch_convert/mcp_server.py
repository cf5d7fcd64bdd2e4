"""批量图像转换 MCP 服务器。

通过 stdio 暴露一个内存中的转换会话：加入图片、转换、查看队列、导出下载。
"""

import logging
from typing import Any

from fastmcp import FastMCP

from .config import get_config
from .converter import ImageBatchConverter
from .exceptions import ImageBatchError
from .models import BatchOutcome, ConversionOutcome, ImageFormats, QueuedImage
from .utils.logging_helpers import configure_logging
from .utils.message_formatter import MessageFormatter


MCPResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def from_exception(error: ImageBatchError) -> dict[str, Any]:
        """由领域异常构建错误结果，附带面向用户的提示"""
        details = {"notice": MessageFormatter.user_notice(error.item_name)}
        if error.item_name:
            details["item"] = error.item_name
        return MCPResponseBuilder.error(error.message, error.error_type, details)


_log_config = get_config().logging
configure_logging(_log_config.LOG_LEVEL, _log_config.LOG_FORMAT)
logger = logging.getLogger(__name__)

mcp: FastMCP[Any] = FastMCP("批量图像转换服务")

# 会话级转换器，生命周期与服务进程相同
converter = ImageBatchConverter()


def _format_item(item: QueuedImage) -> dict[str, Any]:
    result = item.encoded_result
    return {
        "id": item.id,
        "name": item.display_name,
        "original_format": item.original_format,
        "original_size": item.original_size,
        "status": item.status.value,
        "converted": None
        if result is None
        else {
            "mime_type": result.mime_type,
            "width": result.width,
            "height": result.height,
            "size": result.byte_size,
            "approximate_size": result.approximate_byte_size,
        },
        "summary": item.get_summary(),
    }


def _format_outcome(outcome: ConversionOutcome) -> dict[str, Any]:
    return {
        "id": outcome.image_id,
        "name": outcome.display_name,
        "success": outcome.success,
        "error": outcome.error,
        "error_type": outcome.error_type,
        "notice": outcome.notice,
        "summary": outcome.get_summary(),
    }


@mcp.tool()
def add_images(paths: list[str]) -> MCPResponse:
    """把本地图片加入转换队列。

    只接受 JPG、PNG、WebP、GIF、BMP、TIFF，其余文件会被跳过并在结果中列出。

    Args:
        paths: 图片文件路径列表
    """
    result = converter.add_files(paths)
    return {
        "success": bool(result.accepted),
        "accepted": result.accepted,
        "rejected": [r.model_dump() for r in result.rejected],
        "message": result.get_message(),
        "queue_size": len(converter.session.items),
    }


@mcp.tool()
def convert_images(
    image_id: str | None = None,
    target_format: str | None = None,
    width: int | None = None,
    height: int | None = None,
    lock_aspect_ratio: bool | None = None,
    quality: int | None = None,
) -> MCPResponse:
    """转换队列中的图片。

    未给出的参数沿用会话当前值。

    Args:
        image_id: 只转换该图片；省略时按顺序转换全部未完成的图片
        target_format: 目标 MIME 类型，如 "image/webp"
        width: 目标宽度（像素）
        height: 目标高度（像素）
        lock_aspect_ratio: 是否保持源图宽高比
        quality: 质量 0-100，仅对 JPEG、WebP、TIFF 生效
    """
    changes = {
        key: value
        for key, value in {
            "target_format": target_format,
            "target_width": width,
            "target_height": height,
            "lock_aspect_ratio": lock_aspect_ratio,
            "quality": quality,
        }.items()
        if value is not None
    }

    try:
        outcome = converter.convert(image_id, **changes)
    except ImageBatchError as e:
        logger.error(MessageFormatter.operation_failed("转换", image_id or "全部", e))
        return MCPResponseBuilder.from_exception(e)

    if isinstance(outcome, BatchOutcome):
        return {
            "success": outcome.success,
            "error": outcome.error,
            "cancelled": outcome.cancelled,
            "summary": outcome.get_summary(),
            "results": [_format_outcome(r) for r in outcome.results],
            "all_completed": converter.coordinator.all_completed(),
        }

    return {
        **_format_outcome(outcome),
        "all_completed": converter.coordinator.all_completed(),
    }


@mcp.tool()
def list_images() -> MCPResponse:
    """查看当前队列、转换参数以及是否可以打包下载。"""
    return {
        "success": True,
        "params": converter.session.params.model_dump(),
        "items": [_format_item(item) for item in converter.coordinator.items],
        "all_completed": converter.coordinator.all_completed(),
    }


@mcp.tool()
def export_images(output_dir: str, image_id: str | None = None) -> MCPResponse:
    """导出转换结果。

    指定 image_id 时直接写出该图片；否则在全部完成后写出一个 zip 压缩包。

    Args:
        output_dir: 输出目录
        image_id: 单张导出的图片 ID
    """
    try:
        path = converter.export(output_dir, image_id)
    except ImageBatchError as e:
        logger.error(MessageFormatter.operation_failed("导出", output_dir, e))
        return MCPResponseBuilder.from_exception(e)

    return {"success": True, "path": str(path), "size": path.stat().st_size}


@mcp.tool()
def get_supported_formats() -> MCPResponse:
    """列出输出格式及其在当前环境中是否可用。"""
    available = converter.coordinator.supported_formats
    return {
        "success": True,
        "formats": [
            {
                "mime_type": spec.mime_type,
                "extension": spec.extension,
                "quality_support": spec.quality_support,
                "description": spec.description,
                "available": spec.mime_type in available,
            }
            for spec in ImageFormats.REGISTRY.values()
        ],
    }


def main() -> None:
    """启动 MCP 服务器"""
    logger.info("启动批量图像转换 MCP 服务器")
    # 启动时完成一次格式探测
    logger.info(f"可用输出格式: {sorted(converter.coordinator.supported_formats)}")
    mcp.run()


if __name__ == "__main__":
    main()
