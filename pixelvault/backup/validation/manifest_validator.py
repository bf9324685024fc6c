"""清单校验器

检查格式版本、创建时间和模块键，并提供模块负载的校验和比对
"""

import time
from typing import Callable, Optional

from ..constants import (
    BACKUP_SCHEMA_VERSION,
    MIN_SUPPORTED_VERSION,
    BackupManifest,
    BackupSection,
)
from ..format.checksums import CHECKSUM_PREFIX, payload_checksum
from ..models import BackupValidationResult, ValidationError
from .sanitizer import ContentSanitizer

FUTURE_TOLERANCE_MS = 86_400_000
"""创建时间允许超前的范围（1天）"""

OLDEST_PLAUSIBLE_TIMESTAMP_MS = 1_700_000_000_000
"""早于该时间（约2023年11月）的备份视为异常"""


class ManifestValidator:
    """清单校验器"""

    def __init__(
        self,
        sanitizer: Optional[ContentSanitizer] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """初始化清单校验器

        Args:
            sanitizer: 内容清理工具
            clock: 返回当前毫秒时间戳的函数
        """
        self.sanitizer = sanitizer or ContentSanitizer()
        self.clock = clock or (lambda: int(time.time() * 1000))

    def validate(self, manifest: BackupManifest) -> BackupValidationResult:
        errors: list[ValidationError] = []

        if manifest.schema_version < MIN_SUPPORTED_VERSION:
            errors.append(ValidationError(
                "SCHEMA_TOO_OLD",
                f"不支持的备份格式版本: {manifest.schema_version}",
            ))
        if manifest.schema_version > BACKUP_SCHEMA_VERSION:
            errors.append(ValidationError.warning(
                "SCHEMA_TOO_NEW",
                f"备份由更新版本创建（格式 v{manifest.schema_version}），部分数据可能无法恢复",
            ))

        now = self.clock()
        if manifest.created_at > now + FUTURE_TOLERANCE_MS:
            errors.append(ValidationError.warning("TIMESTAMP_FUTURE", "备份创建时间晚于当前时间"))
        if manifest.created_at < OLDEST_PLAUSIBLE_TIMESTAMP_MS:
            errors.append(ValidationError.warning("TIMESTAMP_OLD", "备份创建时间异常久远"))

        for key in manifest.modules:
            if not self.sanitizer.is_valid_module_key(key):
                errors.append(ValidationError.warning(
                    "INVALID_MODULE_KEY", f"模块键格式不合法: {key!r}", module=key
                ))
            elif BackupSection.from_key(key) is None:
                errors.append(ValidationError.warning(
                    "UNKNOWN_MODULE", f"未知模块 {key}，恢复时将跳过", module=key
                ))

        return BackupValidationResult.from_errors(errors)

    def verify_checksum(self, module_key: str, payload: str, manifest: BackupManifest) -> bool:
        """比对模块负载与清单中的校验和

        清单没有该模块的 sha256 校验和时视为通过
        """
        info = manifest.modules.get(module_key)
        if info is None or not info.checksum.startswith(CHECKSUM_PREFIX):
            return True
        return info.checksum.lower() == payload_checksum(payload)


__all__ = ["ManifestValidator"]
