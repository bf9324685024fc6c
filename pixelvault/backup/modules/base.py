"""模块处理器接口

每个数据模块实现统一的导出、快照、恢复和回滚接口
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from ..constants import BackupSection


class BackupModuleHandler(ABC):
    """备份模块处理器

    处理器不捕获存储异常，所有错误交由恢复执行器处理
    """

    section: BackupSection
    """处理器对应的模块分区"""

    @abstractmethod
    async def export(self) -> str:
        """将模块当前的全部状态序列化为负载

        Returns:
            JSON 字符串，可被 restore 完整还原
        """

    @abstractmethod
    async def count_entries(self) -> int:
        """导出时包含的记录条数"""

    async def snapshot(self) -> str:
        """捕获恢复前的状态，用于回滚"""
        return await self.export()

    @abstractmethod
    async def restore(self, payload: str) -> None:
        """用负载替换模块当前状态

        Args:
            payload: 导出时生成的 JSON 字符串

        Raises:
            ValueError: 负载无法解析
        """

    async def rollback(self, snapshot: str) -> None:
        """回滚到快照状态"""
        await self.restore(snapshot)

    @staticmethod
    def _dumps(data: Any) -> str:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))

    def _loads_list(self, payload: str) -> list:
        data = json.loads(payload)
        if not isinstance(data, list):
            raise ValueError(f"模块 {self.section.key} 的负载必须是 JSON 数组")
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} section={self.section.key}>"


__all__ = ["BackupModuleHandler"]
