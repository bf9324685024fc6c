"""备份模块处理器"""

from ..constants import PLAYLIST_KEYS, QUICK_FILL_KEYS, EQUALIZER_KEYS
from .base import BackupModuleHandler
from .preferences import (
    PlaylistsModuleHandler,
    GlobalSettingsModuleHandler,
    QuickFillModuleHandler,
    EqualizerModuleHandler,
)
from .records import (
    FavoritesModuleHandler,
    LyricsModuleHandler,
    SearchHistoryModuleHandler,
    TransitionsModuleHandler,
    EngagementStatsModuleHandler,
    PlaybackHistoryModuleHandler,
)
from .artist_images import ArtistImagesModuleHandler
from .registry import ModuleRegistry, build_default_registry, create_local_registry

__all__ = [
    "BackupModuleHandler",
    "PLAYLIST_KEYS",
    "QUICK_FILL_KEYS",
    "EQUALIZER_KEYS",
    "PlaylistsModuleHandler",
    "GlobalSettingsModuleHandler",
    "QuickFillModuleHandler",
    "EqualizerModuleHandler",
    "FavoritesModuleHandler",
    "LyricsModuleHandler",
    "SearchHistoryModuleHandler",
    "TransitionsModuleHandler",
    "EngagementStatsModuleHandler",
    "PlaybackHistoryModuleHandler",
    "ArtistImagesModuleHandler",
    "ModuleRegistry",
    "build_default_registry",
    "create_local_registry",
]
