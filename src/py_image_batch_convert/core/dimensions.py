"""输出尺寸计算。"""


def compute_target_dimensions(
    source_size: tuple[int, int],
    requested_size: tuple[int, int],
    lock_aspect_ratio: bool,
) -> tuple[int, int]:
    """计算输出尺寸

    未锁定宽高比时直接使用请求尺寸（可能变形）。锁定时在请求的边界框内取
    保持源宽高比的最大尺寸：请求框比源图更"宽"则固定高度，否则固定宽度。

    Args:
        source_size: 源图 (宽, 高)
        requested_size: 请求的 (宽, 高)
        lock_aspect_ratio: 是否锁定宽高比

    Returns:
        tuple[int, int]: 四舍五入到整数像素的 (宽, 高)，最小为 1
    """
    requested_width, requested_height = requested_size
    if not lock_aspect_ratio:
        return requested_width, requested_height

    source_width, source_height = source_size
    ratio = source_width / source_height

    width: float = requested_width
    height: float = requested_height
    if requested_width / requested_height > ratio:
        width = requested_height * ratio
    else:
        height = requested_width / ratio

    return max(1, round(width)), max(1, round(height))
