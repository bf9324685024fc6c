"""备份格式检测器

根据文件头部字节判断备份容器格式，不做任何 I/O
"""

from enum import Enum
from typing import BinaryIO

from ..constants import PXPL_MAGIC, PXPL_MAGIC_SIZE

ZIP_MAGIC = b"PK\x03\x04"
GZIP_MAGIC = b"\x1f\x8b"
UTF8_BOM = b"\xef\xbb\xbf"

LEGACY_RAW_KEY = '"formatVersion"'


class BackupFormat(str, Enum):
    """备份容器格式"""

    PXPL_V3_ZIP = "pxpl_v3_zip"
    PXPL_V2_GZIP = "pxpl_v2_gzip"
    LEGACY_GZIP = "legacy_gzip"
    LEGACY_RAW = "legacy_raw"
    UNKNOWN = "unknown"

    @property
    def is_legacy_payload(self) -> bool:
        """是否为单个 JSON 文档形式的旧版负载"""
        return self in (
            BackupFormat.PXPL_V2_GZIP,
            BackupFormat.LEGACY_GZIP,
            BackupFormat.LEGACY_RAW,
        )


class BackupFormatDetector:
    """备份格式检测器

    按优先级依次匹配：
    1. PXPL + ZIP 本地文件头 -> PXPL_V3_ZIP
    2. PXPL + GZIP 魔数 -> PXPL_V2_GZIP
    3. 仅 GZIP 魔数 -> LEGACY_GZIP
    4. 以 {"formatVersion" 开头的 JSON 文本 -> LEGACY_RAW
    5. 其它或不足 8 字节 -> UNKNOWN
    """

    HEADER_SIZE = 8
    """判断格式所需的最少字节数"""

    PROBE_SIZE = 64
    """读取器探测时读取的字节数，保证能看到 formatVersion 键"""

    def detect(self, header: bytes) -> BackupFormat:
        """检测备份格式

        Args:
            header: 文件开头的字节

        Returns:
            检测到的格式，无法识别时返回 UNKNOWN
        """
        if header is None or len(header) < self.HEADER_SIZE:
            return BackupFormat.UNKNOWN

        header = bytes(header)

        if header.startswith(PXPL_MAGIC):
            body = header[PXPL_MAGIC_SIZE:]
            if body.startswith(ZIP_MAGIC):
                return BackupFormat.PXPL_V3_ZIP
            if body.startswith(GZIP_MAGIC):
                return BackupFormat.PXPL_V2_GZIP
            return BackupFormat.UNKNOWN

        if header.startswith(GZIP_MAGIC):
            return BackupFormat.LEGACY_GZIP

        if self._looks_like_legacy_json(header):
            return BackupFormat.LEGACY_RAW

        return BackupFormat.UNKNOWN

    def _looks_like_legacy_json(self, header: bytes) -> bool:
        if header.startswith(UTF8_BOM):
            header = header[len(UTF8_BOM):]

        # 头部可能截断多字节字符
        text = header.decode("utf-8", errors="ignore").lstrip()
        if not text.startswith("{"):
            return False

        rest = text[1:].lstrip()
        if not rest:
            return False
        if rest.startswith(LEGACY_RAW_KEY):
            return True
        # 头部在键名中间被截断
        return LEGACY_RAW_KEY.startswith(rest)

    def read_header(self, stream: BinaryIO, size: int = PROBE_SIZE) -> bytes:
        """从流中读取头部字节

        Args:
            stream: 二进制流
            size: 最多读取的字节数

        Returns:
            读取到的字节（可能少于 size）
        """
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


__all__ = [
    "BackupFormat",
    "BackupFormatDetector",
    "ZIP_MAGIC",
    "GZIP_MAGIC",
]
