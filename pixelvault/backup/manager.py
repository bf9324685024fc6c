"""备份管理器

对外的统一入口：导出备份、检查备份、执行恢复以及维护备份历史
"""

import asyncio
import platform
import time
from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger

from .. import __version__
from .constants import BACKUP_SCHEMA_VERSION, BackupManifest, BackupSection, DeviceInfo
from .errors import BackupExportError, BackupValidationFailed
from .format.reader import ArchiveSource, BackupReader
from .format.writer import BackupWriter
from .history import BackupHistoryRepository
from .models import (
    BackupHistoryEntry,
    BackupOperationType,
    RestorePlan,
    RestoreResult,
    Success,
)
from .modules.registry import ModuleRegistry, create_local_registry
from .path_manager import PathManager
from .progress import ProgressReporter, ProgressSink
from .restore.executor import RestoreExecutor
from .restore.planner import RestorePlanner
from .validation.pipeline import ValidationPipeline


def _now_ms() -> int:
    return int(time.time() * 1000)


def _local_device_info() -> DeviceInfo:
    return DeviceInfo(manufacturer=platform.system(), model=platform.machine())


class BackupManager:
    """备份管理器"""

    def __init__(
        self,
        registry: ModuleRegistry,
        reader: BackupReader,
        writer: BackupWriter,
        planner: RestorePlanner,
        executor: RestoreExecutor,
        pipeline: ValidationPipeline,
        history: BackupHistoryRepository,
    ):
        self.registry = registry
        self.reader = reader
        self.writer = writer
        self.planner = planner
        self.executor = executor
        self.pipeline = pipeline
        self.history = history

    async def export(
        self,
        target: Union[str, Path],
        sections: Optional[Iterable[BackupSection]] = None,
        on_progress: Optional[ProgressSink] = None,
    ) -> BackupManifest:
        """导出备份

        Args:
            target: 目标文件路径
            sections: 要导出的模块，默认为全部已注册模块
            on_progress: 进度回调

        Returns:
            写入文件的清单

        Raises:
            BackupExportError: 模块没有注册处理器或收集数据失败
            BackupWriteError: 写入文件失败
        """
        target = Path(target)
        selected = list(dict.fromkeys(sections)) if sections is not None else self.registry.sections()
        progress = ProgressReporter(on_progress, BackupOperationType.EXPORT, len(selected) + 3)
        logger.info(f"开始导出备份: {target}, 模块 {[s.key for s in selected]}")

        await progress.advance("正在准备备份", "检查要导出的模块")
        payloads: dict[str, str] = {}
        for section in selected:
            handler = self.registry.get(section)
            if handler is None:
                raise BackupExportError(f"模块「{section.label}」没有注册处理器")
            await progress.advance("正在收集数据", section.label, section)
            try:
                payloads[section.key] = await handler.export()
            except Exception as e:
                logger.error(f"收集模块 {section.key} 的数据失败: {e}")
                raise BackupExportError(f"收集模块「{section.label}」的数据失败: {e}") from e

        await progress.advance("正在打包", f"{len(payloads)} 个模块")
        manifest = BackupManifest(
            schema_version=BACKUP_SCHEMA_VERSION,
            app_version=__version__,
            created_at=_now_ms(),
            device_info=_local_device_info(),
        )
        final_manifest = await self.writer.write(target, manifest, payloads)
        await progress.finish("导出完成", target.name)

        await self._record_history(str(target), target.name, final_manifest, target.stat().st_size)
        return final_manifest

    async def inspect_backup(self, archive: ArchiveSource) -> RestorePlan:
        """检查备份并生成恢复计划

        Args:
            archive: 备份来源

        Returns:
            恢复计划，清单校验产生的警告会追加到计划警告中

        Raises:
            BackupValidationFailed: 文件或清单校验出现错误
            RestorePlanError: 清单读取失败
        """
        file_result = await asyncio.to_thread(self.pipeline.validate_file, archive)
        if not file_result.is_valid():
            errors = file_result.fatal_errors
            logger.error(f"备份文件校验失败: {errors[0].message}")
            raise BackupValidationFailed(errors[0].message, errors)

        plan = await self.planner.build_restore_plan(archive)

        manifest_result = self.pipeline.validate_manifest(plan.manifest)
        if not manifest_result.is_valid():
            errors = manifest_result.fatal_errors
            logger.error(f"备份清单校验失败: {errors[0].message}")
            raise BackupValidationFailed(errors[0].message, errors)

        warnings = ValidationPipeline.collect_warnings(file_result, manifest_result)
        if warnings:
            plan = plan.with_warnings(w.message for w in warnings)
        return plan

    async def restore(
        self,
        archive: ArchiveSource,
        plan: RestorePlan,
        on_progress: Optional[ProgressSink] = None,
    ) -> RestoreResult:
        """按计划恢复备份

        恢复成功后记录备份历史，历史写入失败不影响恢复结果
        """
        result = await self.executor.execute(archive, plan, on_progress)
        if isinstance(result, Success) and not isinstance(archive, (bytes, bytearray)):
            path = Path(archive)
            try:
                size = path.stat().st_size
            except OSError:
                size = 0
            await self._record_history(str(path), path.name, plan.manifest, size)
        return result

    async def get_backup_history(self) -> list[BackupHistoryEntry]:
        """获取备份历史（最新的在前）"""
        return await self.history.get_history()

    async def remove_backup_history_entry(self, uri: str) -> None:
        """删除一条备份历史"""
        await self.history.remove_entry(uri)

    async def _record_history(
        self,
        uri: str,
        display_name: str,
        manifest: BackupManifest,
        size_bytes: int,
    ) -> None:
        entry = BackupHistoryEntry(
            uri=uri,
            display_name=display_name,
            created_at=manifest.created_at,
            schema_version=manifest.schema_version,
            modules=list(manifest.modules),
            size_bytes=size_bytes,
            app_version=manifest.app_version,
        )
        try:
            await self.history.add_entry(entry)
        except OSError as e:
            logger.warning(f"记录备份历史失败: {e}")


def create_backup_manager(config) -> BackupManager:
    """根据配置构建备份管理器

    Args:
        config: VaultConfig 实例

    Returns:
        备份管理器
    """
    path_manager = PathManager(config.data_dir)
    path_manager.ensure_directories()
    paths = path_manager.paths

    registry = create_local_registry(paths)
    reader = BackupReader()
    pipeline = ValidationPipeline.from_config(config)
    history = BackupHistoryRepository(
        paths.history_file,
        max_entries=config.get("history.max_entries", 10),
    )
    logger.debug(f"备份管理器已初始化，数据目录: {paths.data_dir}")
    return BackupManager(
        registry=registry,
        reader=reader,
        writer=BackupWriter(),
        planner=RestorePlanner(reader, registry),
        executor=RestoreExecutor(reader, pipeline, registry),
        pipeline=pipeline,
        history=history,
    )


__all__ = ["BackupManager", "create_backup_manager"]
