"""备份容器格式"""

from .checksums import build_module_info, payload_checksum, CHECKSUM_PREFIX
from .detector import BackupFormat, BackupFormatDetector
from .legacy_adapter import LegacyPayloadAdapter
from .reader import ArchiveSource, BackupReader
from .writer import BackupWriter

__all__ = [
    "build_module_info",
    "payload_checksum",
    "CHECKSUM_PREFIX",
    "BackupFormat",
    "BackupFormatDetector",
    "LegacyPayloadAdapter",
    "ArchiveSource",
    "BackupReader",
    "BackupWriter",
]
