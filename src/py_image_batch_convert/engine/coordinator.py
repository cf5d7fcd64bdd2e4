"""批量协调器模块。

持有图片队列，按队列顺序逐张驱动转换管线，并跟踪完成状态。
"""

import threading
from collections.abc import Callable, Iterable
from functools import partial

from pydantic import ValidationError as PydanticValidationError

from ..config import get_config
from ..core.codec import ImageCodec, get_default_codec, probe_supported_formats
from ..core.pipeline import convert_image
from ..exceptions import (
    ErrorHandler,
    ImageBatchError,
    NotFoundError,
    ValidationError,
)
from ..models.constants import is_supported_mime
from ..models.conversion_params import ConversionParams
from ..models.conversion_result import (
    BatchOutcome,
    ConversionOutcome,
    EncodedResult,
    EnqueueResult,
    RejectedFile,
)
from ..models.queued_image import QueuedImage, SourceFile
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter


logger = get_logger()

Converter = Callable[[bytes, ConversionParams], EncodedResult]
Listener = Callable[["BatchSession"], None]


def default_params() -> ConversionParams:
    """由全局配置构建默认转换参数"""
    defaults = get_config().conversion
    return ConversionParams(
        target_format=defaults.DEFAULT_FORMAT,
        target_width=defaults.DEFAULT_WIDTH,
        target_height=defaults.DEFAULT_HEIGHT,
        lock_aspect_ratio=defaults.LOCK_ASPECT_RATIO,
        quality=defaults.DEFAULT_QUALITY,
    )


class BatchSession:
    """一次会话的队列状态

    只存在于内存中，会话结束即丢弃。
    """

    def __init__(self, params: ConversionParams | None = None):
        self.items: list[QueuedImage] = []
        self.params = params or default_params()

    def find(self, image_id: str) -> QueuedImage | None:
        return next((item for item in self.items if item.id == image_id), None)

    def completed_items(self) -> list[QueuedImage]:
        return [item for item in self.items if item.is_completed]

    def pending_items(self) -> list[QueuedImage]:
        return [item for item in self.items if not item.is_completed]

    def all_completed(self) -> bool:
        """队列非空且全部完成"""
        return bool(self.items) and all(item.is_completed for item in self.items)


class BatchCoordinator:
    """批量转换协调器

    转换严格串行：同一时刻只有一张图片在管线中。
    """

    def __init__(
        self,
        session: BatchSession | None = None,
        converter: Converter | None = None,
        codec: ImageCodec | None = None,
        supported_formats: Iterable[str] | None = None,
    ):
        """初始化协调器

        Args:
            session: 队列状态，默认新建
            converter: 转换函数，默认使用 convert_image
            codec: 编解码能力，用于默认转换函数和格式探测
            supported_formats: 已知可用的输出格式，None 时首次使用再探测
        """
        self.session = session or BatchSession()
        self.codec = codec or get_default_codec()
        self.converter: Converter = converter or partial(convert_image, codec=self.codec)
        self._supported_formats = (
            frozenset(supported_formats) if supported_formats is not None else None
        )
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    @property
    def supported_formats(self) -> frozenset[str]:
        """当前环境可用的输出格式，只探测一次"""
        if self._supported_formats is None:
            self._supported_formats = probe_supported_formats(self.codec)
        return self._supported_formats

    @property
    def items(self) -> list[QueuedImage]:
        return list(self.session.items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态变更监听器，返回取消注册的函数"""
        self._listeners.append(listener)
        return partial(self._listeners.remove, listener)

    def _notify(self) -> None:
        # 监听器异常只记录，队列状态以已提交的变更为准
        for listener in list(self._listeners):
            try:
                listener(self.session)
            except Exception:
                logger.exception(f"状态监听器执行失败: {listener!r}")

    def set_params(self, params: ConversionParams) -> None:
        """更新转换参数

        Raises:
            ValidationError: 目标格式在当前环境不可用
        """
        if params.target_format not in self.supported_formats:
            raise ValidationError(
                MessageFormatter.validation_error(
                    "target_format", params.target_format, "当前环境不支持该格式"
                )
            )
        self.session.params = params

    def update_params(self, **changes) -> ConversionParams:
        """在当前参数基础上修改部分字段

        Raises:
            ValidationError: 参数不合法
        """
        merged = {**self.session.params.model_dump(), **changes}
        try:
            params = ConversionParams(**merged)
        except PydanticValidationError as e:
            raise ValidationError(_format_pydantic_error(e)) from e
        self.set_params(params)
        return params

    def enqueue(self, files: Iterable[SourceFile]) -> EnqueueResult:
        """把支持格式的文件追加到队列末尾

        不支持的文件被收集到结果中，不影响其余文件入队。
        """
        result = EnqueueResult()

        with self._lock:
            for source in files:
                if not is_supported_mime(source.mime_type):
                    result.rejected.append(
                        RejectedFile(
                            name=source.name,
                            mime_type=source.mime_type or None,
                            reason=MessageFormatter.unsupported_type(
                                source.name, source.mime_type
                            ),
                        )
                    )
                    continue

                item = QueuedImage.from_source(source)
                self.session.items.append(item)
                result.accepted.append(item.id)

        if result.rejected:
            logger.warning(result.get_message())
        if result.accepted:
            logger.info(
                f"加入 {len(result.accepted)} 张图片，队列共 {len(self.session.items)} 张"
            )
            self._notify()

        return result

    def get(self, image_id: str) -> QueuedImage:
        """按 ID 查找队列项

        Raises:
            NotFoundError: ID 不在队列中
        """
        item = self.session.find(image_id)
        if item is None:
            raise NotFoundError(MessageFormatter.image_not_found(image_id))
        return item

    def convert_one(self, image_id: str) -> EncodedResult:
        """转换单张图片

        成功时写入结果并标记完成；失败时图片保持 pending，异常继续抛给调用方。
        已完成的图片直接返回已有结果。

        Raises:
            NotFoundError: ID 不在队列中
            DecodeError: 源数据无法解码
            EncodeError: 编码失败
        """
        with self._lock:
            item = self.get(image_id)
            if item.encoded_result is not None:
                logger.debug(f"图片已转换，跳过: {item.display_name}")
                return item.encoded_result

            try:
                result = self.converter(item.source_bytes, self.session.params)
            except ImageBatchError as e:
                e.item_name = e.item_name or item.display_name
                raise

            item.mark_completed(result)

        logger.info(
            f"转换完成: {item.display_name} → {result.mime_type} "
            f"{result.width}x{result.height}, {result.get_size_human()}"
        )
        self._notify()
        return result

    def convert_all(self, cancel_event: threading.Event | None = None) -> BatchOutcome:
        """按队列顺序逐张转换所有未完成的图片

        单张失败不影响后续图片。cancel_event 在两张图片之间检查，
        已开始的转换总会执行到结束。
        """
        outcomes: list[ConversionOutcome] = []
        cancelled = False

        with self._lock:
            pending = self.session.pending_items()
            logger.info(f"开始批量转换 {len(pending)} 张图片")

            for item in pending:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    logger.info("批量转换已取消")
                    break

                try:
                    result = self.convert_one(item.id)
                except Exception as e:
                    outcomes.append(
                        ErrorHandler.handle_conversion_error(
                            e, item.id, item.display_name, "批量转换"
                        )
                    )
                    continue

                outcomes.append(
                    ConversionOutcome(
                        image_id=item.id,
                        display_name=item.display_name,
                        success=True,
                        original_size=item.original_size,
                        result=result,
                    )
                )

        failed = sum(1 for outcome in outcomes if not outcome.success)
        batch = BatchOutcome(
            results=outcomes,
            success=failed == 0 and not cancelled,
            error=f"{failed} 张图片转换失败" if failed else None,
            cancelled=cancelled,
        )
        logger.info(batch.get_summary())
        return batch

    def all_completed(self) -> bool:
        """所有图片都已完成时才允许打包下载"""
        return self.session.all_completed()


def _format_pydantic_error(error: PydanticValidationError) -> str:
    """格式化 pydantic 验证错误"""
    messages = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        msg = err["msg"]
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)
