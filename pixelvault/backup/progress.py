"""传输进度上报

回调抛出的异常只记录日志，不会中断导出或恢复
"""

import inspect
from typing import Awaitable, Callable, Optional, Union

from loguru import logger

from .constants import BackupSection
from .models import BackupOperationType, BackupTransferProgressUpdate

ProgressSink = Callable[[BackupTransferProgressUpdate], Union[None, Awaitable[None]]]
"""进度回调，可以是普通函数或协程函数"""


class ProgressReporter:
    """按步骤递增地向回调发送进度"""

    def __init__(
        self,
        sink: Optional[ProgressSink],
        operation: BackupOperationType,
        total_steps: int,
    ):
        self.sink = sink
        self.operation = operation
        self.total_steps = total_steps
        self.step = 0

    async def advance(
        self,
        title: str,
        detail: str,
        section: Optional[BackupSection] = None,
        step: Optional[int] = None,
    ) -> None:
        """前进一步（或跳到指定步骤）并通知回调"""
        self.step = self.step + 1 if step is None else max(step, self.step)
        if self.sink is None:
            return
        update = BackupTransferProgressUpdate(
            operation=self.operation,
            step=self.step,
            total_steps=self.total_steps,
            title=title,
            detail=detail,
            section=section,
        )
        try:
            result = self.sink(update)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"进度回调出错 (步骤 {self.step}/{self.total_steps}): {e}")

    async def finish(self, title: str, detail: str) -> None:
        """发送最终进度（step == total_steps）"""
        await self.advance(title, detail, step=self.total_steps)


__all__ = ["ProgressSink", "ProgressReporter"]
