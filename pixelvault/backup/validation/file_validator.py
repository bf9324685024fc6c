"""备份文件校验器

检查文件可读性、大小、扩展名和格式；ZIP 容器额外检查路径穿越与压缩炸弹
"""

import io
import zipfile
import zlib
from pathlib import Path
from typing import Optional

from loguru import logger

from ..constants import PXPL_MAGIC_SIZE
from ..errors import BackupReadError
from ..format.detector import BackupFormat, BackupFormatDetector
from ..format.reader import ArchiveSource, describe_archive, load_archive_bytes
from ..models import BackupValidationResult, ValidationError

MAX_BACKUP_SIZE_BYTES = 50 * 1024 * 1024
MAX_ZIP_RATIO = 100
ALLOWED_EXTENSIONS = (".pxpl", ".gz")


class BackupFileValidator:
    """备份文件校验器"""

    def __init__(
        self,
        detector: Optional[BackupFormatDetector] = None,
        max_size_bytes: int = MAX_BACKUP_SIZE_BYTES,
        max_zip_ratio: int = MAX_ZIP_RATIO,
    ):
        self.detector = detector or BackupFormatDetector()
        self.max_size_bytes = max_size_bytes
        self.max_zip_ratio = max_zip_ratio

    def validate(self, archive: ArchiveSource) -> BackupValidationResult:
        """校验备份文件

        Args:
            archive: 备份来源

        Returns:
            校验结果
        """
        errors: list[ValidationError] = []

        try:
            raw = load_archive_bytes(archive)
        except BackupReadError as e:
            return BackupValidationResult.from_errors([ValidationError("FILE_ACCESS", str(e))])

        if not raw:
            return BackupValidationResult.from_errors([
                ValidationError("FILE_EMPTY", "备份文件为空")
            ])

        if len(raw) > self.max_size_bytes:
            limit_mb = self.max_size_bytes // (1024 * 1024)
            return BackupValidationResult.from_errors([
                ValidationError("FILE_TOO_LARGE", f"备份文件超过 {limit_mb}MB 上限")
            ])

        if not isinstance(archive, (bytes, bytearray)):
            name = Path(archive).name.lower()
            if not name.endswith(ALLOWED_EXTENSIONS):
                errors.append(ValidationError.warning(
                    "FILE_EXTENSION", "文件扩展名不是 .pxpl，可能不是有效的备份文件"
                ))

        backup_format = self.detector.detect(raw[: BackupFormatDetector.PROBE_SIZE])
        if backup_format == BackupFormat.UNKNOWN:
            errors.append(ValidationError("FORMAT_UNKNOWN", "无法识别的备份文件格式"))
            return BackupValidationResult.from_errors(errors)

        if backup_format == BackupFormat.PXPL_V3_ZIP:
            errors.extend(self._check_zip_safety(raw[PXPL_MAGIC_SIZE:]))

        result = BackupValidationResult.from_errors(errors)
        if not result.is_valid():
            logger.warning(f"备份文件校验未通过: {describe_archive(archive)}")
        return result

    def _check_zip_safety(self, zip_bytes: bytes) -> list[ValidationError]:
        errors: list[ValidationError] = []
        limit = len(zip_bytes) * self.max_zip_ratio
        total = 0
        try:
            with zipfile.ZipFile(io.BytesIO(zip_bytes), "r") as zf:
                for info in zf.infolist():
                    name = info.filename
                    if ".." in name or name.startswith(("/", "\\")):
                        errors.append(ValidationError("ZIP_PATH_TRAVERSAL", f"可疑的 ZIP 条目路径: {name}"))
                        return errors

                    if not name.endswith(".json"):
                        errors.append(ValidationError.warning(
                            "ZIP_UNEXPECTED_ENTRY", f"备份中包含意外的文件: {name}"
                        ))

                    # 按实际解压的字节计数，不信任条目头中的大小
                    with zf.open(info) as entry:
                        while True:
                            chunk = entry.read(64 * 1024)
                            if not chunk:
                                break
                            total += len(chunk)
                            if total > limit:
                                errors.append(ValidationError("ZIP_BOMB", "备份文件的压缩比异常"))
                                return errors
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
            errors.append(ValidationError("ZIP_CORRUPT", f"备份 ZIP 已损坏: {e}"))
        return errors


__all__ = ["BackupFileValidator", "MAX_BACKUP_SIZE_BYTES", "MAX_ZIP_RATIO"]
