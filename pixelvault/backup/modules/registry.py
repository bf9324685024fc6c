"""模块注册表

模块标识到处理器的映射，在启动时构建，进程生命周期内不变
"""

from typing import Iterator, Optional

from loguru import logger

from ..constants import BackupSection
from ..path_manager import VaultPaths
from ..stores import (
    ArtistStore,
    PreferenceStore,
    RecordStore,
    JsonPreferenceStore,
    SqliteArtistStore,
    SqliteRecordStore,
)
from .artist_images import ArtistImagesModuleHandler
from .base import BackupModuleHandler
from .preferences import (
    EqualizerModuleHandler,
    GlobalSettingsModuleHandler,
    PlaylistsModuleHandler,
    QuickFillModuleHandler,
)
from .records import (
    EngagementStatsModuleHandler,
    FavoritesModuleHandler,
    LyricsModuleHandler,
    PlaybackHistoryModuleHandler,
    SearchHistoryModuleHandler,
    TransitionsModuleHandler,
)

RECORD_HANDLERS = (
    FavoritesModuleHandler,
    LyricsModuleHandler,
    SearchHistoryModuleHandler,
    TransitionsModuleHandler,
    EngagementStatsModuleHandler,
    PlaybackHistoryModuleHandler,
)


class ModuleRegistry:
    """模块注册表"""

    def __init__(self, handlers: Optional[list[BackupModuleHandler]] = None):
        self._handlers: dict[BackupSection, BackupModuleHandler] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: BackupModuleHandler) -> BackupModuleHandler:
        """注册处理器

        Args:
            handler: 模块处理器

        Returns:
            注册的处理器

        Raises:
            ValueError: 同一模块重复注册
        """
        section = handler.section
        if section in self._handlers:
            raise ValueError(f"模块已注册: {section.key}")
        self._handlers[section] = handler
        logger.debug(f"已注册模块处理器: {section.key}")
        return handler

    def get(self, section: BackupSection) -> Optional[BackupModuleHandler]:
        """获取处理器，未注册返回None"""
        return self._handlers.get(section)

    def sections(self) -> list[BackupSection]:
        """已注册的模块（按注册顺序）"""
        return list(self._handlers)

    def __contains__(self, section: object) -> bool:
        return section in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[BackupModuleHandler]:
        return iter(self._handlers.values())


def build_default_registry(
    preference_store: PreferenceStore,
    record_stores: dict[BackupSection, RecordStore],
    artist_store: ArtistStore,
) -> ModuleRegistry:
    """构建包含全部模块的注册表

    Args:
        preference_store: 共享偏好存储
        record_stores: 记录类模块的存储 {模块: 存储}
        artist_store: 艺术家存储

    Returns:
        模块注册表（按 BackupSection 声明顺序注册）
    """
    handlers: dict[BackupSection, BackupModuleHandler] = {
        BackupSection.PLAYLISTS: PlaylistsModuleHandler(preference_store),
        BackupSection.GLOBAL_SETTINGS: GlobalSettingsModuleHandler(preference_store),
        BackupSection.QUICK_FILL: QuickFillModuleHandler(preference_store),
        BackupSection.EQUALIZER: EqualizerModuleHandler(preference_store),
        BackupSection.ARTIST_IMAGES: ArtistImagesModuleHandler(artist_store),
    }
    for handler_cls in RECORD_HANDLERS:
        store = record_stores.get(handler_cls.section)
        if store is None:
            logger.warning(f"未提供模块 {handler_cls.section.key} 的存储，跳过注册")
            continue
        handlers[handler_cls.section] = handler_cls(store)

    return ModuleRegistry([handlers[s] for s in BackupSection if s in handlers])


def create_local_registry(paths: VaultPaths) -> ModuleRegistry:
    """使用本地存储构建注册表

    Args:
        paths: 数据路径配置

    Returns:
        模块注册表
    """
    db_path = paths.library_db
    preference_store = JsonPreferenceStore(paths.preferences_file)
    record_stores = {
        handler_cls.section: SqliteRecordStore(db_path, handler_cls.section.key)
        for handler_cls in RECORD_HANDLERS
    }
    artist_store = SqliteArtistStore(db_path)
    return build_default_registry(preference_store, record_stores, artist_store)


__all__ = [
    "ModuleRegistry",
    "build_default_registry",
    "create_local_registry",
]
