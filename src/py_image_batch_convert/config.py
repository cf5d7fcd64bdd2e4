"""统一配置管理模块。

提供转换参数默认值、打包参数和日志配置，支持环境变量覆盖。
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConversionDefaults:
    """转换相关的默认配置"""

    # 目标格式与质量（质量为 0-100 的滑块值）
    DEFAULT_FORMAT: str = "image/jpeg"
    DEFAULT_QUALITY: int = 80

    # 目标尺寸
    DEFAULT_WIDTH: int = 800
    DEFAULT_HEIGHT: int = 600
    LOCK_ASPECT_RATIO: bool = True

    # 解码安全限制（像素数），超过时 Pillow 抛出 DecompressionBombError
    MAX_IMAGE_PIXELS: int = 178_956_970


@dataclass(frozen=True)
class PackagingDefaults:
    """打包下载相关的默认配置"""

    ARCHIVE_NAME: str = "compressed_images.zip"
    OUTPUT_SUFFIX: str = "_compressed"
    COMPRESS_LEVEL: int = 9


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.conversion = ConversionDefaults()
        self.packaging = PackagingDefaults()
        self.logging = LoggingDefaults()

        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        if default_format := os.getenv("PIB_DEFAULT_FORMAT"):
            object.__setattr__(
                self.conversion, "DEFAULT_FORMAT", default_format.strip().lower()
            )

        if quality := os.getenv("PIB_DEFAULT_QUALITY"):
            object.__setattr__(self.conversion, "DEFAULT_QUALITY", int(quality))

        if width := os.getenv("PIB_DEFAULT_WIDTH"):
            object.__setattr__(self.conversion, "DEFAULT_WIDTH", int(width))

        if height := os.getenv("PIB_DEFAULT_HEIGHT"):
            object.__setattr__(self.conversion, "DEFAULT_HEIGHT", int(height))

        if lock_ratio := os.getenv("PIB_LOCK_ASPECT_RATIO"):
            object.__setattr__(
                self.conversion,
                "LOCK_ASPECT_RATIO",
                lock_ratio.lower() in ("true", "1", "yes"),
            )

        if archive_name := os.getenv("PIB_ARCHIVE_NAME"):
            object.__setattr__(self.packaging, "ARCHIVE_NAME", archive_name)

        if log_level := os.getenv("PIB_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
