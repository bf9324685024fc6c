"""备份读写测试"""

import gzip
import io
import json
import zipfile

import pytest

from pixelvault.backup.constants import MANIFEST_FILENAME, BackupManifest
from pixelvault.backup.errors import (
    ArchiveCorruptedError,
    BackupReadError,
    BackupWriteError,
    ModuleNotFoundInArchive,
    UnsupportedFormatError,
)
from pixelvault.backup.format.checksums import payload_checksum
from pixelvault.backup.format.detector import BackupFormat
from pixelvault.backup.format.reader import BackupReader, describe_archive
from pixelvault.backup.format.writer import BackupWriter

PAYLOADS = {
    "favorites": '[{"songId":1},{"songId":2}]',
    "lyrics": '[{"songId":1,"content":"第一行"}]',
}

LEGACY_DOC = {
    "formatVersion": 2,
    "exportedAtEpochMs": 1_700_000_000_000,
    "availableSections": ["favorites"],
    "favorites": [{"songId": 9}],
}


def _pxpl_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return b"PXPL" + buffer.getvalue()


@pytest.fixture
def reader():
    return BackupReader()


@pytest.fixture
def writer():
    return BackupWriter()


class TestBackupWriter:
    """测试写入器"""

    def test_build_archive_layout(self, writer):
        """PXPL 魔数之后是 ZIP，清单为第一个条目"""
        manifest, data = writer.build_archive(BackupManifest(created_at=1), PAYLOADS)

        assert data.startswith(b"PXPLPK\x03\x04")
        with zipfile.ZipFile(io.BytesIO(data[4:])) as zf:
            names = zf.namelist()
        assert names == [MANIFEST_FILENAME, "favorites.json", "lyrics.json"]

        assert manifest.modules["favorites"].checksum == payload_checksum(PAYLOADS["favorites"])
        assert manifest.modules["favorites"].entry_count == 2
        assert manifest.modules["lyrics"].entry_count == 1

    def test_build_archive_progress(self, writer):
        """进度回调覆盖清单和每个模块"""
        calls = []
        writer.build_archive(BackupManifest(), PAYLOADS, lambda step, total: calls.append((step, total)))

        assert calls == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_write_file(self, writer, temp_dir):
        """写入文件且不留下临时文件"""
        target = temp_dir / "out" / "backup.pxpl"
        manifest = await writer.write(target, BackupManifest(created_at=5), PAYLOADS)

        assert target.exists()
        assert not (temp_dir / "out" / "backup.pxpl.tmp").exists()
        assert set(manifest.modules) == set(PAYLOADS)

    @pytest.mark.asyncio
    async def test_write_failure(self, writer, temp_dir):
        """目标目录不可用时抛出 BackupWriteError"""
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(BackupWriteError):
            await writer.write(blocker / "backup.pxpl", BackupManifest(), PAYLOADS)


class TestBackupReader:
    """测试读取器"""

    @pytest.mark.asyncio
    async def test_read_v3_file(self, reader, writer, temp_dir):
        """读取写入器生成的文件"""
        target = temp_dir / "backup.pxpl"
        written = await writer.write(target, BackupManifest(app_version="3.0.0", created_at=42), PAYLOADS)

        assert await reader.detect_format(target) == BackupFormat.PXPL_V3_ZIP

        manifest = await reader.read_manifest(target)
        assert manifest.app_version == "3.0.0"
        assert manifest.created_at == 42
        assert manifest.modules == written.modules

        assert await reader.read_module_payload(target, "lyrics") == PAYLOADS["lyrics"]
        assert await reader.read_all_module_payloads(str(target)) == PAYLOADS

    @pytest.mark.asyncio
    async def test_missing_module(self, reader, make_archive):
        """请求不存在的模块"""
        data = make_archive(PAYLOADS)

        with pytest.raises(ModuleNotFoundInArchive) as exc_info:
            await reader.read_module_payload(data, "equalizer")
        assert exc_info.value.module_key == "equalizer"

    @pytest.mark.asyncio
    async def test_read_legacy_gzip(self, reader):
        """裸 GZIP 的旧版备份"""
        data = gzip.compress(json.dumps(LEGACY_DOC).encode("utf-8"))

        assert await reader.detect_format(data) == BackupFormat.LEGACY_GZIP
        manifest = await reader.read_manifest(data)
        assert manifest.schema_version == 2
        assert json.loads(await reader.read_module_payload(data, "favorites")) == [{"songId": 9}]

    @pytest.mark.asyncio
    async def test_read_pxpl_gzip(self, reader):
        """PXPL 前缀的 GZIP 备份"""
        data = b"PXPL" + gzip.compress(json.dumps(LEGACY_DOC).encode("utf-8"))

        assert await reader.detect_format(data) == BackupFormat.PXPL_V2_GZIP
        payloads = await reader.read_all_module_payloads(data)
        assert set(payloads) == {"favorites"}

    @pytest.mark.asyncio
    async def test_read_legacy_raw_with_bom(self, reader):
        """带 BOM 的未压缩旧版 JSON"""
        data = b"\xef\xbb\xbf" + json.dumps(LEGACY_DOC).encode("utf-8")

        manifest = await reader.read_manifest(data)
        assert set(manifest.modules) == {"favorites"}

    @pytest.mark.asyncio
    async def test_unknown_format(self, reader):
        with pytest.raises(UnsupportedFormatError):
            await reader.read_manifest(b"this is not a backup at all")

    @pytest.mark.asyncio
    async def test_corrupted_zip(self, reader):
        with pytest.raises(ArchiveCorruptedError):
            await reader.read_manifest(b"PXPLPK\x03\x04" + b"\x00" * 64)

    @pytest.mark.asyncio
    async def test_corrupted_gzip(self, reader):
        with pytest.raises(ArchiveCorruptedError):
            await reader.read_manifest(b"\x1f\x8b\x08\x00" + b"\xff" * 32)

    @pytest.mark.asyncio
    async def test_missing_manifest(self, reader):
        """ZIP 中没有清单"""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("favorites.json", "[]")

        with pytest.raises(ArchiveCorruptedError):
            await reader.read_manifest(b"PXPL" + buffer.getvalue())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("manifest", [
        {"schemaVersion": "2", "modules": {}},
        {"schemaVersion": 3, "modules": ["favorites"]},
        {"schemaVersion": 3, "modules": {"favorites": {"entryCount": "many"}}},
        {"schemaVersion": 3, "deviceInfo": "phone"},
        ["not", "an", "object"],
    ])
    async def test_malformed_manifest_fields(self, reader, manifest):
        """清单字段类型错误时抛出 ArchiveCorruptedError"""
        data = _pxpl_zip({MANIFEST_FILENAME: json.dumps(manifest)})

        with pytest.raises(ArchiveCorruptedError):
            await reader.read_manifest(data)

    @pytest.mark.asyncio
    async def test_null_manifest_fields_use_defaults(self, reader):
        data = _pxpl_zip({MANIFEST_FILENAME: json.dumps({"schemaVersion": 3, "createdAt": None, "modules": None})})

        manifest = await reader.read_manifest(data)

        assert manifest.schema_version == 3
        assert manifest.created_at == 0
        assert manifest.modules == {}

    @pytest.mark.asyncio
    async def test_missing_file(self, reader, temp_dir):
        with pytest.raises(BackupReadError):
            await reader.read_manifest(temp_dir / "nope.pxpl")

    def test_describe_archive(self, temp_dir):
        assert describe_archive(temp_dir / "a.pxpl") == str(temp_dir / "a.pxpl")
        assert "3" in describe_archive(b"abc")
