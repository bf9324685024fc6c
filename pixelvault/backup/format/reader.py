"""备份读取器

根据检测到的格式读取清单与模块负载：
- PXPL_V3_ZIP: 魔数之后是 ZIP，manifest.json 为清单，<模块键>.json 为负载
- PXPL_V2_GZIP / LEGACY_GZIP / LEGACY_RAW: 解压后交给旧版适配器

每次调用都是完整读取，要么返回全部结果，要么抛出 BackupReadError
"""

import asyncio
import gzip
import io
import json
import zipfile
import zlib
from pathlib import Path
from typing import Optional, Union

from jsonschema import Draft7Validator
from loguru import logger

from ..constants import MANIFEST_FILENAME, PXPL_MAGIC_SIZE, BackupManifest
from ..errors import (
    ArchiveCorruptedError,
    BackupReadError,
    ModuleNotFoundInArchive,
    UnsupportedFormatError,
)
from .detector import BackupFormat, BackupFormatDetector
from .legacy_adapter import LegacyPayloadAdapter

ArchiveSource = Union[str, Path, bytes]
"""备份来源：本地文件路径或原始字节"""

MODULE_ENTRY_SUFFIX = ".json"

_NULLABLE_INT = {"type": ["integer", "null"]}
_NULLABLE_STR = {"type": ["string", "null"]}

MANIFEST_SCHEMA = {
    "type": "object",
    "properties": {
        "schemaVersion": _NULLABLE_INT,
        "appVersion": _NULLABLE_STR,
        "appVersionCode": _NULLABLE_INT,
        "createdAt": _NULLABLE_INT,
        "deviceInfo": {
            "type": ["object", "null"],
            "properties": {
                "manufacturer": _NULLABLE_STR,
                "model": _NULLABLE_STR,
                "androidVersion": _NULLABLE_INT,
            },
        },
        "modules": {
            "type": ["object", "null"],
            "additionalProperties": {
                "type": ["object", "null"],
                "properties": {
                    "checksum": _NULLABLE_STR,
                    "entryCount": _NULLABLE_INT,
                    "sizeBytes": _NULLABLE_INT,
                },
            },
        },
    },
}
"""ZIP 备份清单的字段类型约束"""

_manifest_validator = Draft7Validator(MANIFEST_SCHEMA)


def describe_archive(archive: ArchiveSource) -> str:
    """备份来源的可读描述"""
    if isinstance(archive, (bytes, bytearray)):
        return f"<内存备份 {len(archive)} 字节>"
    return str(archive)


def load_archive_bytes(archive: ArchiveSource) -> bytes:
    """读取备份的全部字节

    Raises:
        BackupReadError: 文件无法读取
    """
    if isinstance(archive, (bytes, bytearray)):
        return bytes(archive)
    path = Path(archive)
    try:
        return path.read_bytes()
    except OSError as e:
        raise BackupReadError(f"无法读取备份文件 {path}: {e}") from e


def parse_manifest(data) -> BackupManifest:
    """校验清单字段类型并转换为 BackupManifest

    Raises:
        ArchiveCorruptedError: 清单不是对象或字段类型不正确
    """
    if not isinstance(data, dict):
        raise ArchiveCorruptedError("清单必须是 JSON 对象")
    error = next(iter(_manifest_validator.iter_errors(data)), None)
    if error is not None:
        field_path = ".".join(str(p) for p in error.absolute_path) or "<root>"
        raise ArchiveCorruptedError(f"清单字段 {field_path} 类型错误: {error.message}")
    return BackupManifest.from_dict(data)


class BackupReader:
    """备份读取器"""

    def __init__(
        self,
        detector: Optional[BackupFormatDetector] = None,
        legacy_adapter: Optional[LegacyPayloadAdapter] = None,
    ):
        self.detector = detector or BackupFormatDetector()
        self.legacy_adapter = legacy_adapter or LegacyPayloadAdapter()

    async def detect_format(self, archive: ArchiveSource) -> BackupFormat:
        """检测备份格式"""
        raw = await asyncio.to_thread(load_archive_bytes, archive)
        return self.detector.detect(raw[: BackupFormatDetector.PROBE_SIZE])

    async def read_manifest(self, archive: ArchiveSource) -> BackupManifest:
        """读取清单

        Args:
            archive: 备份来源

        Returns:
            备份清单

        Raises:
            BackupReadError: 读取或解析失败
        """
        return await asyncio.to_thread(self._read_manifest_sync, archive)

    async def read_module_payload(self, archive: ArchiveSource, module_key: str) -> str:
        """读取单个模块负载

        Raises:
            ModuleNotFoundInArchive: 备份中没有该模块
        """
        return await asyncio.to_thread(self._read_module_sync, archive, module_key)

    async def read_all_module_payloads(self, archive: ArchiveSource) -> dict[str, str]:
        """读取全部模块负载

        Returns:
            {模块键: 负载}
        """
        return await asyncio.to_thread(self._read_all_sync, archive)

    def _open(self, archive: ArchiveSource) -> tuple[BackupFormat, bytes]:
        raw = load_archive_bytes(archive)
        backup_format = self.detector.detect(raw[: BackupFormatDetector.PROBE_SIZE])
        logger.debug(f"检测到备份格式: {backup_format.value} ({describe_archive(archive)})")
        if backup_format == BackupFormat.UNKNOWN:
            raise UnsupportedFormatError("无法识别的备份文件格式")
        return backup_format, raw

    def _read_manifest_sync(self, archive: ArchiveSource) -> BackupManifest:
        backup_format, raw = self._open(archive)
        if backup_format == BackupFormat.PXPL_V3_ZIP:
            with self._open_zip(raw) as zf:
                text = self._read_entry(zf, MANIFEST_FILENAME)
            if text is None:
                raise ArchiveCorruptedError("备份中缺少清单文件")
            try:
                data = json.loads(text)
            except ValueError as e:
                raise ArchiveCorruptedError(f"清单 JSON 解析失败: {e}") from e
            return parse_manifest(data)

        manifest, _ = self.legacy_adapter.adapt(self._decode_legacy(raw, backup_format))
        return manifest

    def _read_module_sync(self, archive: ArchiveSource, module_key: str) -> str:
        backup_format, raw = self._open(archive)
        if backup_format == BackupFormat.PXPL_V3_ZIP:
            with self._open_zip(raw) as zf:
                payload = self._read_entry(zf, module_key + MODULE_ENTRY_SUFFIX)
        else:
            _, modules = self.legacy_adapter.adapt(self._decode_legacy(raw, backup_format))
            payload = modules.get(module_key)
        if payload is None:
            raise ModuleNotFoundInArchive(module_key)
        return payload

    def _read_all_sync(self, archive: ArchiveSource) -> dict[str, str]:
        backup_format, raw = self._open(archive)
        if backup_format != BackupFormat.PXPL_V3_ZIP:
            _, modules = self.legacy_adapter.adapt(self._decode_legacy(raw, backup_format))
            return modules

        payloads: dict[str, str] = {}
        with self._open_zip(raw) as zf:
            for name in zf.namelist():
                if name == MANIFEST_FILENAME or not name.endswith(MODULE_ENTRY_SUFFIX):
                    continue
                payloads[name[: -len(MODULE_ENTRY_SUFFIX)]] = self._read_entry(zf, name)
        return payloads

    @staticmethod
    def _open_zip(raw: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(raw[PXPL_MAGIC_SIZE:]), "r")
        except zipfile.BadZipFile as e:
            raise ArchiveCorruptedError(f"备份 ZIP 已损坏: {e}") from e

    @staticmethod
    def _read_entry(zf: zipfile.ZipFile, name: str) -> Optional[str]:
        try:
            data = zf.read(name)
        except KeyError:
            return None
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise ArchiveCorruptedError(f"读取 ZIP 条目 {name} 失败: {e}") from e
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArchiveCorruptedError(f"ZIP 条目 {name} 不是 UTF-8 文本") from e

    @staticmethod
    def _decode_legacy(raw: bytes, backup_format: BackupFormat) -> str:
        try:
            if backup_format == BackupFormat.PXPL_V2_GZIP:
                data = gzip.decompress(raw[PXPL_MAGIC_SIZE:])
            elif backup_format == BackupFormat.LEGACY_GZIP:
                data = gzip.decompress(raw)
            elif backup_format == BackupFormat.LEGACY_RAW:
                data = raw
            else:
                raise UnsupportedFormatError(f"无法解压的格式: {backup_format.value}")
            return data.decode("utf-8-sig")
        except (OSError, EOFError, zlib.error) as e:
            raise ArchiveCorruptedError(f"旧版备份解压失败: {e}") from e
        except UnicodeDecodeError as e:
            raise ArchiveCorruptedError("旧版备份不是 UTF-8 文本") from e


__all__ = [
    "ArchiveSource",
    "BackupReader",
    "describe_archive",
    "load_archive_bytes",
    "parse_manifest",
    "MANIFEST_SCHEMA",
]
