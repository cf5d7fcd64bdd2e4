"""打包下载测试。"""

import zipfile
from io import BytesIO
from pathlib import Path

import pytest

from py_image_batch_convert.engine.packaging import (
    Packager,
    build_archive,
    output_file_name,
    save_download,
)
from py_image_batch_convert.exceptions import ConversionStateError, PackagingError
from py_image_batch_convert.models import QueuedImage
from py_image_batch_convert.utils.naming_helpers import FileNamingStrategy
from tests.conftest import make_encoded_result, make_source


def _completed(name: str, payload: bytes, extension: str = "jpg") -> QueuedImage:
    item = QueuedImage.from_source(make_source(name))
    item.mark_completed(make_encoded_result(payload, file_extension=extension))
    return item


def _read_zip(data: bytes) -> dict[str, bytes]:
    with zipfile.ZipFile(BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


class TestNaming:
    """下载文件名测试"""

    @pytest.mark.parametrize(
        ("display_name", "expected"),
        [
            ("photo.jpg", "photo_compressed.png"),
            ("holiday.2024.jpeg", "holiday.2024_compressed.png"),
            ("noext", "noext_compressed.png"),
            ("dir/sub/pic.bmp", "pic_compressed.png"),
            (".hidden", "_compressed.png"),
            ("trailing.", "trailing._compressed.png"),
        ],
    )
    def test_output_name(self, display_name, expected):
        assert FileNamingStrategy.generate_output_name(display_name, "png") == expected

    def test_unique_names(self):
        names = ["a.jpg", "a.jpg", "b.jpg", "a.jpg", "a_1.jpg"]
        assert FileNamingStrategy.make_unique_names(names) == [
            "a.jpg",
            "a_1.jpg",
            "b.jpg",
            "a_2.jpg",
            "a_1_1.jpg",
        ]

    def test_pending_item_has_no_output_name(self):
        item = QueuedImage.from_source(make_source("a.jpg"))
        with pytest.raises(ConversionStateError):
            output_file_name(item)


class TestArchive:
    """压缩包测试"""

    def test_deflate_archive(self):
        data = build_archive([("a.txt", b"a" * 1000), ("b.txt", b"b")])

        with zipfile.ZipFile(BytesIO(data)) as archive:
            infos = archive.infolist()
            assert [info.filename for info in infos] == ["a.txt", "b.txt"]
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in infos)
            assert infos[0].compress_size < infos[0].file_size

    def test_single_and_archive_payloads_identical(self):
        """单张下载与打包下载中的编码内容逐字节一致"""
        item = _completed("photo.jpg", b"\xff\xd8encoded-bytes\xff\xd9")
        packager = Packager()

        single = packager.single(item)
        bundle = packager.archive([item])

        assert single.file_name == "photo_compressed.jpg"
        assert single.mime_type == "image/jpeg"
        assert bundle.file_name == "compressed_images.zip"
        assert _read_zip(bundle.data) == {single.file_name: single.data}

    def test_archive_skips_pending_and_dedupes(self):
        items = [
            _completed("a.jpg", b"1"),
            QueuedImage.from_source(make_source("pending.jpg")),
            _completed("a.png", b"2"),
        ]

        contents = _read_zip(Packager().archive(items).data)

        assert contents == {"a_compressed.jpg": b"1", "a_compressed_1.jpg": b"2"}

    def test_archive_name_from_config(self, monkeypatch):
        from py_image_batch_convert.config import reset_config

        monkeypatch.setenv("PIB_ARCHIVE_NAME", "batch.zip")
        reset_config()

        assert Packager().archive([_completed("a.jpg", b"1")]).file_name == "batch.zip"

    def test_single_requires_conversion(self):
        item = QueuedImage.from_source(make_source("a.jpg"))
        with pytest.raises(ConversionStateError):
            Packager().single(item)

    def test_nothing_to_archive(self):
        packager = Packager()
        with pytest.raises(PackagingError):
            packager.archive([QueuedImage.from_source(make_source("a.jpg"))])
        assert not packager.busy

    def test_failed_archive_resets_busy(self, monkeypatch):
        """打包失败后可以再次打包"""

        def broken_writestr(self, *args, **kwargs):
            raise OSError("磁盘已满")

        packager = Packager()
        item = _completed("a.jpg", b"1")

        with monkeypatch.context() as patch:
            patch.setattr(zipfile.ZipFile, "writestr", broken_writestr)
            with pytest.raises(PackagingError):
                packager.archive([item])

        assert not packager.busy
        assert _read_zip(packager.archive([item]).data) == {"a_compressed.jpg": b"1"}


class TestSaveDownload:
    """下载写出测试"""

    def test_writes_with_unique_names(self, tmp_path: Path):
        payload = Packager().single(_completed("a.jpg", b"data"))

        first = save_download(payload, tmp_path / "out")
        second = save_download(payload, tmp_path / "out")

        assert first.name == "a_compressed.jpg"
        assert second.name == "a_compressed_1.jpg"
        assert first.read_bytes() == second.read_bytes() == b"data"

    def test_write_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        payload = Packager().single(_completed("a.jpg", b"data"))

        with pytest.raises(PackagingError):
            save_download(payload, blocker / "out")
