"""恢复执行器

以事务方式恢复选中的模块：

1. 快照：为每个有处理器的选中模块调用 snapshot()
2. 读取与校验：一次读取全部负载，逐个校验，任何 ERROR 都会中止事务
3. 恢复：按校验顺序逐个 restore()，首次失败时按相反顺序回滚已恢复的模块
4. 完成：发送最终进度

快照和校验阶段失败时尚未修改任何数据，返回 TotalFailure；
恢复阶段失败返回 PartialFailure，succeeded 始终为空。
各阶段内部抛出的异常都在阶段边界转换为 RestoreResult。
"""

from typing import Optional

from loguru import logger

from ..constants import BackupSection, RestorePhase
from ..format.reader import ArchiveSource, BackupReader
from ..models import (
    BackupOperationType,
    PartialFailure,
    RestorePlan,
    RestoreResult,
    Success,
    TotalFailure,
)
from ..modules.registry import ModuleRegistry
from ..progress import ProgressReporter, ProgressSink
from ..validation.pipeline import ValidationPipeline


def _describe_error(error: BaseException) -> str:
    return str(error) or type(error).__name__


class RestoreExecutor:
    """恢复执行器

    同一时间只应有一个恢复事务运行，由调用方保证
    """

    def __init__(
        self,
        reader: BackupReader,
        validation_pipeline: ValidationPipeline,
        registry: ModuleRegistry,
    ):
        self.reader = reader
        self.validation_pipeline = validation_pipeline
        self.registry = registry

    async def execute(
        self,
        archive: ArchiveSource,
        plan: RestorePlan,
        on_progress: Optional[ProgressSink] = None,
    ) -> RestoreResult:
        """执行恢复事务

        Args:
            archive: 备份来源
            plan: 恢复计划，按 selected_modules 的顺序处理
            on_progress: 进度回调

        Returns:
            Success、PartialFailure 或 TotalFailure 之一
        """
        selected = list(plan.selected_modules)
        progress = ProgressReporter(
            on_progress, BackupOperationType.IMPORT, 3 * len(selected) + 3
        )
        logger.info(f"开始恢复事务: {plan.backup_uri}, 模块 {[s.key for s in selected]}")

        # 快照
        snapshots: dict[BackupSection, str] = {}
        try:
            await progress.advance("正在创建快照", "保存当前数据以便失败时回滚")
            for section in selected:
                handler = self.registry.get(section)
                if handler is None:
                    continue
                snapshots[section] = await handler.snapshot()
                await progress.advance("正在创建快照", section.label, section)
        except Exception as e:
            logger.error(f"[{RestorePhase.SNAPSHOT}] 创建快照失败: {e}")
            return TotalFailure(error=f"创建快照失败: {_describe_error(e)}")

        # 读取与校验
        validated: dict[BackupSection, str] = {}
        try:
            await progress.advance("正在校验备份", "读取模块数据")
            payloads = await self.reader.read_all_module_payloads(archive)

            for section in selected:
                if self.registry.get(section) is None:
                    logger.warning(f"模块 {section.key} 没有注册处理器，跳过")
                    continue
                payload = payloads.get(section.key)
                if payload is None:
                    logger.warning(f"备份中缺少模块 {section.key} 的数据，跳过")
                    continue

                result = self.validation_pipeline.validate_module_payload(
                    section, payload, plan.manifest
                )
                if not result.is_valid():
                    message = result.fatal_errors[0].message
                    logger.error(f"[{RestorePhase.VALIDATE}] 模块 {section.key} 校验失败: {message}")
                    return TotalFailure(error=message)
                for warning in result.warnings:
                    logger.warning(f"模块 {section.key} 校验警告 [{warning.code}]: {warning.message}")

                validated[section] = payload
                await progress.advance("正在校验备份", section.label, section)
        except Exception as e:
            logger.error(f"[{RestorePhase.VALIDATE}] 读取或校验备份失败: {e}")
            return TotalFailure(error=f"读取备份失败: {_describe_error(e)}")

        # 恢复
        restored: list[BackupSection] = []
        try:
            for section, payload in validated.items():
                await progress.advance("正在恢复数据", section.label, section)
                await self.registry.get(section).restore(payload)
                restored.append(section)
        except Exception as e:
            reason = _describe_error(e)
            failed_section = next(s for s in validated if s not in restored)
            logger.error(f"[{RestorePhase.RESTORE}] 恢复模块 {failed_section.key} 失败: {reason}")
            rolled_back = await self._rollback(restored, snapshots)
            return PartialFailure(
                succeeded=frozenset(),
                failed={failed_section: reason},
                rolled_back=rolled_back,
            )

        await progress.finish("恢复完成", f"已恢复 {len(restored)} 个模块")
        logger.info(f"恢复事务完成: {[s.key for s in restored]}")
        return Success()

    async def _rollback(
        self,
        restored: list[BackupSection],
        snapshots: dict[BackupSection, str],
    ) -> bool:
        """按相反顺序回滚已恢复的模块，返回是否全部成功"""
        all_ok = True
        for section in reversed(restored):
            try:
                await self.registry.get(section).rollback(snapshots[section])
                logger.info(f"[{RestorePhase.ROLLBACK}] 已回滚模块 {section.key}")
            except Exception as e:
                all_ok = False
                logger.error(f"[{RestorePhase.ROLLBACK}] 回滚模块 {section.key} 失败，数据状态未知: {e}")
        return all_ok


__all__ = ["RestoreExecutor"]
