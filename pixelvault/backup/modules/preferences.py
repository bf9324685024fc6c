"""偏好类模块处理器

歌单、快速填充、均衡器和全局设置共用同一个偏好存储，
每个处理器只清理自己拥有的键，不会清空整个存储
"""

import asyncio

from loguru import logger

from ..constants import BackupSection, EQUALIZER_KEYS, PLAYLIST_KEYS, QUICK_FILL_KEYS
from ..stores import PreferenceStore
from .base import BackupModuleHandler

GLOBAL_EXCLUDED_KEYS = PLAYLIST_KEYS | QUICK_FILL_KEYS | EQUALIZER_KEYS
"""不属于全局设置的偏好键"""


class ScopedPreferenceModuleHandler(BackupModuleHandler):
    """只拥有固定键集合的偏好处理器"""

    owned_keys: frozenset[str] = frozenset()

    def __init__(self, store: PreferenceStore):
        self.store = store

    def _owns(self, key: str) -> bool:
        return key in self.owned_keys

    async def _owned_entries(self) -> list[dict]:
        entries = await asyncio.to_thread(self.store.export_entries)
        return [e for e in entries if self._owns(e.get("key", ""))]

    async def export(self) -> str:
        return self._dumps(await self._owned_entries())

    async def count_entries(self) -> int:
        return len(await self._owned_entries())

    async def _clear_owned(self) -> None:
        await asyncio.to_thread(self.store.clear_keys, self.owned_keys)

    async def restore(self, payload: str) -> None:
        entries = self._loads_list(payload)
        # 负载中混入的其它模块键不写入
        owned = [e for e in entries if isinstance(e, dict) and self._owns(e.get("key", ""))]
        if len(owned) != len(entries):
            logger.warning(
                f"模块 {self.section.key} 忽略了 {len(entries) - len(owned)} 个不属于本模块的偏好条目"
            )
        await self._clear_owned()
        await asyncio.to_thread(self.store.import_entries, owned)
        logger.info(f"恢复模块 {self.section.key}: {len(owned)} 个偏好项")


class PlaylistsModuleHandler(ScopedPreferenceModuleHandler):
    """歌单"""

    section = BackupSection.PLAYLISTS
    owned_keys = PLAYLIST_KEYS


class QuickFillModuleHandler(ScopedPreferenceModuleHandler):
    """快速填充"""

    section = BackupSection.QUICK_FILL
    owned_keys = QUICK_FILL_KEYS


class EqualizerModuleHandler(ScopedPreferenceModuleHandler):
    """均衡器"""

    section = BackupSection.EQUALIZER
    owned_keys = EQUALIZER_KEYS


class GlobalSettingsModuleHandler(ScopedPreferenceModuleHandler):
    """全局设置

    拥有除其它偏好模块之外的全部键
    """

    section = BackupSection.GLOBAL_SETTINGS
    excluded_keys = GLOBAL_EXCLUDED_KEYS

    def _owns(self, key: str) -> bool:
        return bool(key) and key not in self.excluded_keys

    async def _clear_owned(self) -> None:
        await asyncio.to_thread(self.store.clear_except_keys, self.excluded_keys)


__all__ = [
    "PLAYLIST_KEYS",
    "QUICK_FILL_KEYS",
    "EQUALIZER_KEYS",
    "GLOBAL_EXCLUDED_KEYS",
    "ScopedPreferenceModuleHandler",
    "PlaylistsModuleHandler",
    "QuickFillModuleHandler",
    "EqualizerModuleHandler",
    "GlobalSettingsModuleHandler",
]
