"""恢复计划构建器

读取备份清单，生成可恢复模块、恢复预览和版本兼容警告
"""

from loguru import logger

from ..constants import BACKUP_SCHEMA_VERSION, BackupManifest, BackupSection
from ..errors import RestorePlanError
from ..format.reader import ArchiveSource, BackupReader, describe_archive
from ..models import ModuleRestoreDetail, RestorePlan
from ..modules.registry import ModuleRegistry


class RestorePlanner:
    """恢复计划构建器"""

    def __init__(self, reader: BackupReader, registry: ModuleRegistry):
        self.reader = reader
        self.registry = registry

    async def build_restore_plan(self, archive: ArchiveSource) -> RestorePlan:
        """构建恢复计划

        清单中的未知模块键会被静默丢弃；默认选择全部可恢复模块

        Args:
            archive: 备份来源

        Returns:
            恢复计划

        Raises:
            RestorePlanError: 清单读取失败或清单内容无法生成计划
        """
        try:
            manifest = await self.reader.read_manifest(archive)
            plan = self._build_plan(archive, manifest)
        except Exception as e:
            logger.error(f"生成恢复计划失败: {e}")
            raise RestorePlanError(f"生成恢复计划失败: {e}") from e

        logger.info(
            f"恢复计划已生成: {plan.backup_uri}, "
            f"可恢复模块 {[s.key for s in plan.available_modules]}"
        )
        return plan

    def _build_plan(self, archive: ArchiveSource, manifest: BackupManifest) -> RestorePlan:
        available: list[BackupSection] = []
        details: dict[BackupSection, ModuleRestoreDetail] = {}
        for key, info in manifest.modules.items():
            section = BackupSection.from_key(key)
            if section is None or section in details:
                continue
            available.append(section)
            details[section] = ModuleRestoreDetail(
                entry_count=info.entry_count or 0,
                size_bytes=info.size_bytes or 0,
            )

        warnings: list[str] = []
        if manifest.schema_version < BACKUP_SCHEMA_VERSION:
            warnings.append(
                f"该备份使用旧版格式 (v{manifest.schema_version})，部分模块可能不可用"
            )

        for section in available:
            if section not in self.registry:
                warnings.append(f"模块「{section.label}」在当前版本中不受支持，恢复时将跳过")

        return RestorePlan(
            manifest=manifest,
            backup_uri=describe_archive(archive),
            available_modules=tuple(available),
            selected_modules=tuple(available),
            module_details=details,
            warnings=tuple(warnings),
        )


__all__ = ["RestorePlanner"]
