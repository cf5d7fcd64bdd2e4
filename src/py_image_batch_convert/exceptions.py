"""图像批量转换异常处理模块。

定义统一的异常类型、Pillow 异常到领域异常的映射装饰器，以及把异常转换为
单项失败结果的错误处理器。所有错误都只影响单个图片或单次操作。
"""

from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.conversion_result import ConversionOutcome
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


class ImageBatchError(Exception):
    """批量转换相关错误基类"""

    error_type = "general"

    def __init__(self, message: str, item_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.item_name = item_name


class ValidationError(ImageBatchError):
    """参数验证错误"""

    error_type = "validation"


class UnsupportedFormatError(ImageBatchError):
    """文件类型不在格式注册表中"""

    error_type = "unsupported_format"


class DecodeError(ImageBatchError):
    """源数据无法解码为图像"""

    error_type = "decode"


class EncodeError(ImageBatchError):
    """编码器拒绝参数或返回空结果"""

    error_type = "encode"


class NotFoundError(ImageBatchError):
    """操作引用的图片已不在队列中"""

    error_type = "not_found"


class PackagingError(ImageBatchError):
    """打包生成失败"""

    error_type = "packaging"


class ConversionStateError(ImageBatchError):
    """图片状态迁移不合法"""

    error_type = "state"


def handle_image_errors(operation_name: str = "图像解码"):
    """把 Pillow 抛出的异常统一转换为 DecodeError

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except ImageBatchError:
                raise
            except UnidentifiedImageError as e:
                logger.warning(f"{operation_name} - 无法识别图像格式: {e}")
                raise DecodeError(f"无法识别的图像数据: {e}") from e
            except DecompressionBombError as e:
                logger.warning(f"{operation_name} - 图像过大: {e}")
                raise DecodeError(f"图像尺寸过大，拒绝解码: {e}") from e
            except (OSError, ValueError, SyntaxError) as e:
                # 截断或损坏的数据在 load() 阶段才会暴露
                logger.warning(f"{operation_name} - 数据损坏: {e}")
                raise DecodeError(f"图像数据损坏: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    把单项转换中的异常记录日志并转换为失败的 ConversionOutcome。
    """

    @staticmethod
    def _log_error(
        operation: str, target: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录"""
        log_msg = MessageFormatter.format_error(operation, target, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def _create_failed_outcome(
        image_id: str, display_name: str, error: Exception
    ) -> ConversionOutcome:
        error_type = getattr(error, "error_type", "processing")
        message = getattr(error, "message", None) or str(error)
        return ConversionOutcome(
            image_id=image_id,
            display_name=display_name,
            success=False,
            error=message,
            error_type=error_type,
            notice=MessageFormatter.user_notice(display_name),
        )

    @staticmethod
    def handle_conversion_error(
        error: Exception,
        image_id: str,
        display_name: str,
        operation: str = "图像转换",
    ) -> ConversionOutcome:
        """按异常类型分级记录日志并生成失败结果"""
        match error:
            case DecodeError() | UnsupportedFormatError() | ValidationError():
                ErrorHandler._log_error(operation, display_name, error, "warning")
            case NotFoundError():
                ErrorHandler._log_error(operation, image_id, error, "warning")
            case EncodeError():
                ErrorHandler._log_error(
                    f"{operation} - 编码器错误", display_name, error, "error"
                )
            case _:
                ErrorHandler._log_error(operation, display_name, error, "error")

        return ErrorHandler._create_failed_outcome(image_id, display_name, error)
