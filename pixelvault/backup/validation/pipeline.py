"""校验流水线

组合文件、清单与模块负载校验；所有校验都不修改任何存储
"""

from typing import Optional

from ..constants import BackupManifest, BackupSection
from ..format.reader import ArchiveSource
from ..models import BackupValidationResult, ValidationError
from .file_validator import BackupFileValidator
from .manifest_validator import ManifestValidator
from .module_schema import ModuleSchemaValidator


class ValidationPipeline:
    """校验流水线"""

    def __init__(
        self,
        file_validator: Optional[BackupFileValidator] = None,
        manifest_validator: Optional[ManifestValidator] = None,
        module_schema_validator: Optional[ModuleSchemaValidator] = None,
    ):
        self.file_validator = file_validator or BackupFileValidator()
        self.manifest_validator = manifest_validator or ManifestValidator()
        self.module_schema_validator = module_schema_validator or ModuleSchemaValidator()

    @classmethod
    def from_config(cls, config: dict) -> "ValidationPipeline":
        """根据配置中的 validation 段创建"""
        limits = config.get("validation") or {}
        return cls(
            file_validator=BackupFileValidator(
                max_size_bytes=limits.get("max_backup_size_mb", 50) * 1024 * 1024,
                max_zip_ratio=limits.get("max_zip_ratio", 100),
            ),
            module_schema_validator=ModuleSchemaValidator(
                max_entries=limits.get("max_entries_per_module", 100_000),
                max_string_length=limits.get("max_string_length", 50_000),
            ),
        )

    def validate_file(self, archive: ArchiveSource) -> BackupValidationResult:
        return self.file_validator.validate(archive)

    def validate_manifest(self, manifest: BackupManifest) -> BackupValidationResult:
        return self.manifest_validator.validate(manifest)

    def validate_module_payload(
        self,
        section: BackupSection,
        payload: str,
        manifest: Optional[BackupManifest] = None,
    ) -> BackupValidationResult:
        """校验单个模块负载

        提供清单时先比对校验和，不一致直接返回 CHECKSUM_MISMATCH，不再检查结构

        Args:
            section: 模块分区
            payload: 模块负载
            manifest: 备份清单

        Returns:
            校验结果
        """
        if manifest is not None and not self.manifest_validator.verify_checksum(
            section.key, payload, manifest
        ):
            return BackupValidationResult.from_errors([
                ValidationError(
                    "CHECKSUM_MISMATCH",
                    f"模块「{section.label}」的校验和不匹配，备份可能已损坏",
                    module=section.key,
                )
            ])

        return self.module_schema_validator.validate(section, payload)

    @staticmethod
    def collect_warnings(*results: BackupValidationResult) -> list[ValidationError]:
        """收集多个结果中的警告"""
        warnings: list[ValidationError] = []
        for result in results:
            warnings.extend(result.warnings)
        return warnings


__all__ = ["ValidationPipeline"]
