"""记录类模块处理器

每个模块独占一个记录存储，恢复时整体替换
"""

import asyncio
from typing import Any

from loguru import logger

from ..constants import BackupSection
from ..models import PlaybackHistoryBackupEntry
from ..stores import RecordStore
from .base import BackupModuleHandler


class RecordListModuleHandler(BackupModuleHandler):
    """记录列表处理器"""

    def __init__(self, store: RecordStore):
        self.store = store

    def _normalize(self, record: Any) -> Any:
        """写入前规范化单条记录"""
        return record

    async def export(self) -> str:
        records = await asyncio.to_thread(self.store.read_all)
        return self._dumps([self._normalize(r) for r in records])

    async def count_entries(self) -> int:
        records = await asyncio.to_thread(self.store.read_all)
        return len(records)

    async def restore(self, payload: str) -> None:
        records = [self._normalize(r) for r in self._loads_list(payload)]
        await asyncio.to_thread(self.store.replace_all, records)
        logger.info(f"恢复模块 {self.section.key}: {len(records)} 条记录")


class FavoritesModuleHandler(RecordListModuleHandler):
    section = BackupSection.FAVORITES


class LyricsModuleHandler(RecordListModuleHandler):
    section = BackupSection.LYRICS


class SearchHistoryModuleHandler(RecordListModuleHandler):
    section = BackupSection.SEARCH_HISTORY


class TransitionsModuleHandler(RecordListModuleHandler):
    section = BackupSection.TRANSITIONS


class EngagementStatsModuleHandler(RecordListModuleHandler):
    section = BackupSection.ENGAGEMENT_STATS


class PlaybackHistoryModuleHandler(RecordListModuleHandler):
    """播放历史

    记录统一转换为 songId/timestamp/durationMs/startTimestamp/endTimestamp 结构
    """

    section = BackupSection.PLAYBACK_HISTORY

    def _normalize(self, record: Any) -> Any:
        if not isinstance(record, dict):
            raise ValueError(f"播放历史记录必须是对象: {record!r}")
        return PlaybackHistoryBackupEntry.from_dict(record).to_dict()


__all__ = [
    "RecordListModuleHandler",
    "FavoritesModuleHandler",
    "LyricsModuleHandler",
    "SearchHistoryModuleHandler",
    "TransitionsModuleHandler",
    "EngagementStatsModuleHandler",
    "PlaybackHistoryModuleHandler",
]
