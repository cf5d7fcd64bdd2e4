"""日志工具模块。

统一获取模块级日志记录器，并在服务入口处完成一次性的日志配置。
"""

import inspect
import logging


def get_logger(name: str | None = None) -> logging.Logger:
    """获取以调用模块命名的日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 日志记录器
    """
    if name is None:
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def configure_logging(level: str, fmt: str) -> None:
    """配置根日志记录器，仅由服务入口调用"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=fmt)
