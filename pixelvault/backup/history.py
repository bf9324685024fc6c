"""备份历史记录

按备份位置去重，最新的在前，超过上限的旧记录被丢弃
"""

import asyncio
from pathlib import Path

from loguru import logger

from ..common.file_handler import JsonFileHandler
from .models import BackupHistoryEntry

MAX_HISTORY_ENTRIES = 10


class BackupHistoryRepository:
    """备份历史记录仓库"""

    def __init__(self, history_file: Path, max_entries: int = MAX_HISTORY_ENTRIES):
        """初始化历史记录仓库

        Args:
            history_file: 历史记录文件路径
            max_entries: 保留的最大条数
        """
        history_file = Path(history_file)
        self._handler = JsonFileHandler(history_file.parent)
        self._filename = history_file.name
        self.max_entries = max_entries
        self._lock = asyncio.Lock()

    async def _read(self) -> list[BackupHistoryEntry]:
        data = await self._handler.load_async(self._filename, default=[])
        if not isinstance(data, list):
            logger.warning("备份历史文件格式错误，视为空历史")
            return []
        entries = []
        for item in data:
            if isinstance(item, dict) and item.get("uri"):
                entries.append(BackupHistoryEntry.from_dict(item))
        return entries

    async def _write(self, entries: list[BackupHistoryEntry]) -> None:
        saved = await self._handler.save_async(self._filename, [e.to_dict() for e in entries])
        if not saved:
            raise OSError(f"保存备份历史失败: {self._filename}")

    async def get_history(self) -> list[BackupHistoryEntry]:
        """获取历史记录（最新的在前）"""
        async with self._lock:
            return await self._read()

    async def add_entry(self, entry: BackupHistoryEntry) -> None:
        """添加历史记录，同一位置的旧记录会被替换"""
        async with self._lock:
            current = [e for e in await self._read() if e.uri != entry.uri]
            current.insert(0, entry)
            await self._write(current[: self.max_entries])
        logger.debug(f"已记录备份历史: {entry.uri}")

    async def remove_entry(self, uri: str) -> None:
        """删除指定位置的历史记录"""
        async with self._lock:
            current = await self._read()
            await self._write([e for e in current if e.uri != uri])

    async def clear(self) -> None:
        """清空历史记录"""
        async with self._lock:
            await self._handler.delete_async(self._filename)


__all__ = ["BackupHistoryRepository", "MAX_HISTORY_ENTRIES"]
