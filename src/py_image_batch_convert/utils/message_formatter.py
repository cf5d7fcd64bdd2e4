"""消息格式化工具模块。

统一日志与用户提示中的错误消息文本。
"""

from pathlib import Path
from typing import Any


# 面向用户的通用失败提示
RETRY_NOTICE = "处理时出现错误，请重试"


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def image_not_found(image_id: str) -> str:
        """队列中不存在该图片"""
        return f"队列中找不到图片: {image_id}"

    @staticmethod
    def unsupported_type(name: str, mime_type: str | None) -> str:
        """不支持的文件类型消息"""
        return f"不支持的文件类型: {name} ({mime_type or '未知类型'})"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def validation_error(field: str, value: Any, reason: str | None = None) -> str:
        """参数验证错误消息"""
        msg = f"参数验证失败 - {field}: {value}"
        if reason:
            msg += f" ({reason})"
        return msg

    @staticmethod
    def format_error(operation: str, target: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{target}]: {error}"

    @staticmethod
    def user_notice(item_name: str | None = None) -> str:
        """面向用户的失败提示，附带受影响的图片"""
        if item_name:
            return f"{RETRY_NOTICE}（{item_name}）"
        return RETRY_NOTICE
