"""集成测试。

测试从本地文件到导出下载的完整流程，以及 MCP 服务器工具。
"""

import zipfile
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from py_image_batch_convert.converter import ImageBatchConverter
from py_image_batch_convert.exceptions import PackagingError
from py_image_batch_convert.models import BatchOutcome, ImageStatus
from py_image_batch_convert.utils.file_helpers import read_source_file
from py_image_batch_convert.utils.message_formatter import RETRY_NOTICE
from tests.conftest import make_image_bytes


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    """包含两张可用图片和一个图标文件的目录"""
    (tmp_path / "photo.jpg").write_bytes(make_image_bytes("JPEG", (800, 600)))
    (tmp_path / "logo.png").write_bytes(
        make_image_bytes("PNG", (300, 300), mode="RGBA", color=(0, 0, 0, 0))
    )
    Image.new("RGB", (32, 32), "green").save(tmp_path / "favicon.ico")
    return tmp_path


class TestFileHelpers:
    """本地文件读取测试"""

    def test_mime_from_extension(self, image_dir: Path):
        assert read_source_file(image_dir / "photo.jpg").mime_type == "image/jpeg"
        assert read_source_file(image_dir / "favicon.ico").mime_type == "image/x-icon"

    def test_mime_sniffed_without_extension(self, image_dir: Path):
        target = image_dir / "photo"
        target.write_bytes((image_dir / "photo.jpg").read_bytes())
        assert read_source_file(target).mime_type == "image/jpeg"


class TestImageBatchConverter:
    """批量转换器端到端测试"""

    @pytest.fixture
    def converter(self) -> ImageBatchConverter:
        return ImageBatchConverter()

    def test_complete_workflow(self, converter, image_dir: Path, tmp_path: Path):
        """加入、转换、打包导出"""
        added = converter.add_files(
            [
                image_dir / "photo.jpg",
                image_dir / "logo.png",
                image_dir / "favicon.ico",
                image_dir / "missing.jpg",
            ]
        )
        assert len(added.accepted) == 2
        assert sorted(r.name for r in added.rejected) == ["favicon.ico", "missing.jpg"]

        outcome = converter.convert(
            target_format="image/webp", target_width=200, target_height=200, quality=70
        )
        assert isinstance(outcome, BatchOutcome)
        assert outcome.success
        assert all(item.status == ImageStatus.COMPLETED for item in converter.session.items)

        archive_path = converter.export(tmp_path / "out")
        assert archive_path.name == "compressed_images.zip"

        with zipfile.ZipFile(archive_path) as archive:
            assert sorted(archive.namelist()) == [
                "logo_compressed.webp",
                "photo_compressed.webp",
            ]
            with Image.open(BytesIO(archive.read("photo_compressed.webp"))) as img:
                assert img.format == "WEBP"
                assert img.size == (200, 150)

    def test_single_conversion_and_export(self, converter, image_dir: Path, tmp_path):
        [image_id] = converter.add_files([image_dir / "photo.jpg"]).accepted

        outcome = converter.convert(image_id, target_format="image/bmp")
        assert outcome.success
        assert "photo.jpg" in outcome.get_summary()

        path = converter.export(tmp_path / "single", image_id)
        assert path.name == "photo_compressed.bmp"
        assert path.read_bytes() == converter.session.items[0].encoded_result.payload

    def test_batch_download_requires_all_completed(self, converter, image_dir: Path):
        ids = converter.add_files([image_dir / "photo.jpg", image_dir / "logo.png"])
        converter.convert(ids.accepted[0])

        with pytest.raises(PackagingError):
            converter.download()

    def test_unknown_id_reported(self, converter):
        outcome = converter.convert("missing")
        assert not outcome.success
        assert outcome.error_type == "not_found"

    def test_unknown_id_keeps_params(self, converter):
        before = converter.session.params

        outcome = converter.convert("missing", quality=10, target_format="image/png")

        assert outcome.error_type == "not_found"
        assert converter.session.params == before


class TestMCPServer:
    """MCP服务器功能测试"""

    def test_mcp_server_imports(self):
        from py_image_batch_convert.mcp_server import mcp

        assert mcp is not None

    def test_mcp_tools(self):
        from py_image_batch_convert.mcp_server import (
            add_images,
            convert_images,
            export_images,
            get_supported_formats,
            list_images,
        )

        tools = {
            "add_images": add_images,
            "convert_images": convert_images,
            "list_images": list_images,
            "export_images": export_images,
            "get_supported_formats": get_supported_formats,
        }
        for name, tool in tools.items():
            assert hasattr(tool, "name")
            assert tool.name == name

    @pytest.fixture
    def server(self, monkeypatch):
        from py_image_batch_convert import mcp_server

        monkeypatch.setattr(mcp_server, "converter", ImageBatchConverter())
        return mcp_server

    def test_tool_workflow(self, server, image_dir: Path, tmp_path: Path):
        added = server.add_images.fn(
            [str(image_dir / "photo.jpg"), str(image_dir / "favicon.ico")]
        )
        assert added["success"]
        assert added["queue_size"] == 1
        assert [r["name"] for r in added["rejected"]] == ["favicon.ico"]

        early = server.export_images.fn(str(tmp_path / "early"))
        assert early["success"] is False
        assert early["error_type"] == "packaging"
        assert early["details"]["notice"] == RETRY_NOTICE

        converted = server.convert_images.fn(
            target_format="image/png", width=400, height=400
        )
        assert converted["success"]
        assert converted["all_completed"]
        assert converted["results"][0]["error_type"] is None

        exported = server.export_images.fn(str(tmp_path / "out"))
        assert exported["success"]
        assert Path(exported["path"]).name == "compressed_images.zip"
        assert exported["size"] > 0

    def test_convert_unknown_id(self, server):
        response = server.convert_images.fn(image_id="missing", quality=10)

        assert response["success"] is False
        assert response["error_type"] == "not_found"
        assert response["notice"].startswith(RETRY_NOTICE)
        assert server.list_images.fn()["params"]["quality"] != 10
