"""备份模块常量

定义备份格式版本、模块分区以及清单结构，供读取器、写入器和恢复流程共享
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


BACKUP_SCHEMA_VERSION = 3
"""当前备份格式版本"""

MIN_SUPPORTED_VERSION = 1
"""可读取的最旧备份格式版本"""

MANIFEST_FILENAME = "manifest.json"
"""ZIP 备份中清单文件的条目名"""

BACKUP_FILE_EXTENSION = ".pxpl"
"""备份文件扩展名"""

PXPL_MAGIC = b"PXPL"
"""PixelVault 备份文件魔数"""

PXPL_MAGIC_SIZE = len(PXPL_MAGIC)

PLAYLIST_KEYS = frozenset({
    "user_playlists_json_v1",
    "playlist_song_order_modes",
    "playlists_sort_option",
})
"""歌单模块拥有的偏好键"""

QUICK_FILL_KEYS = frozenset({
    "quick_fill_enabled",
    "quick_fill_source",
    "quick_fill_queue_size",
    "quick_fill_excluded_genres",
})
"""快速填充模块拥有的偏好键"""

EQUALIZER_KEYS = frozenset({
    "equalizer_enabled",
    "equalizer_preset",
    "equalizer_custom_bands",
    "bass_boost_strength",
    "virtualizer_strength",
    "loudness_enhancer_gain",
})
"""均衡器模块拥有的偏好键"""


class BackupSection(Enum):
    """备份模块分区

    每个成员对应一个独立存储的数据模块，值为清单中使用的模块键
    """

    PLAYLISTS = ("playlists", "歌单", "歌单列表及歌曲排序设置", 1)
    GLOBAL_SETTINGS = ("global_settings", "全局设置", "主题、播放行为等应用偏好", 1)
    FAVORITES = ("favorites", "收藏", "收藏的歌曲", 1)
    LYRICS = ("lyrics", "歌词", "导入或编辑过的歌词", 1)
    SEARCH_HISTORY = ("search_history", "搜索历史", "最近的搜索记录", 1)
    TRANSITIONS = ("transitions", "过渡规则", "歌曲之间的淡入淡出规则", 1)
    ENGAGEMENT_STATS = ("engagement_stats", "收听统计", "歌曲播放次数与时长", 1)
    PLAYBACK_HISTORY = ("playback_history", "播放历史", "逐条播放事件记录", 1)
    QUICK_FILL = ("quick_fill", "快速填充", "快速填充队列的偏好设置", 3)
    ARTIST_IMAGES = ("artist_images", "艺术家图片", "自定义的艺术家图片链接", 3)
    EQUALIZER = ("equalizer", "均衡器", "均衡器预设与音效设置", 3)

    def __init__(self, key: str, label: str, description: str, since_version: int):
        self.key = key
        self.label = label
        self.description = description
        self.since_version = since_version

    @classmethod
    def from_key(cls, key: str) -> Optional["BackupSection"]:
        """根据模块键查找分区

        Args:
            key: 清单中的模块键

        Returns:
            对应的分区，未知键返回None
        """
        for section in cls:
            if section.key == key:
                return section
        return None

    @classmethod
    def default_selection(cls) -> list["BackupSection"]:
        """默认选择全部分区（按声明顺序）"""
        return list(cls)


@dataclass(frozen=True)
class BackupModuleInfo:
    """单个模块的清单信息"""

    checksum: str
    """校验和，格式为 sha256:<hex>"""

    entry_count: int
    """记录条数"""

    size_bytes: int
    """序列化后的字节数"""

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "checksum": self.checksum,
            "entryCount": self.entry_count,
            "sizeBytes": self.size_bytes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupModuleInfo":
        """从字典创建"""
        return cls(
            checksum=data.get("checksum") or "",
            entry_count=data.get("entryCount") or 0,
            size_bytes=data.get("sizeBytes") or 0,
        )


@dataclass(frozen=True)
class DeviceInfo:
    """导出设备信息"""

    manufacturer: str = ""
    model: str = ""
    platform_version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "manufacturer": self.manufacturer,
            "model": self.model,
            "androidVersion": self.platform_version,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeviceInfo":
        """从字典创建"""
        data = data or {}
        return cls(
            manufacturer=data.get("manufacturer") or "",
            model=data.get("model") or "",
            platform_version=data.get("androidVersion") or 0,
        )


@dataclass
class BackupManifest:
    """备份清单"""

    schema_version: int = BACKUP_SCHEMA_VERSION
    """备份格式版本"""

    app_version: str = ""
    """导出程序版本"""

    app_version_code: int = 0
    """导出程序版本号"""

    created_at: int = 0
    """创建时间（毫秒时间戳）"""

    device_info: DeviceInfo = field(default_factory=DeviceInfo)
    """导出设备信息"""

    modules: Dict[str, BackupModuleInfo] = field(default_factory=dict)
    """模块信息 {模块键: 模块信息}"""

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "schemaVersion": self.schema_version,
            "appVersion": self.app_version,
            "appVersionCode": self.app_version_code,
            "createdAt": self.created_at,
            "deviceInfo": self.device_info.to_dict(),
            "modules": {key: info.to_dict() for key, info in self.modules.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupManifest":
        """从字典创建"""
        modules = data.get("modules") or {}
        return cls(
            schema_version=data.get("schemaVersion") or 0,
            app_version=data.get("appVersion") or "",
            app_version_code=data.get("appVersionCode") or 0,
            created_at=data.get("createdAt") or 0,
            device_info=DeviceInfo.from_dict(data.get("deviceInfo")),
            modules={
                key: BackupModuleInfo.from_dict(info or {})
                for key, info in modules.items()
            },
        )


class RestorePhase:
    """恢复阶段常量"""

    SNAPSHOT = "snapshot"
    VALIDATE = "validate"
    RESTORE = "restore"
    ROLLBACK = "rollback"
    FINALIZE = "finalize"


__all__ = [
    "BACKUP_SCHEMA_VERSION",
    "MIN_SUPPORTED_VERSION",
    "MANIFEST_FILENAME",
    "BACKUP_FILE_EXTENSION",
    "PXPL_MAGIC",
    "PXPL_MAGIC_SIZE",
    "PLAYLIST_KEYS",
    "QUICK_FILL_KEYS",
    "EQUALIZER_KEYS",
    "BackupSection",
    "BackupModuleInfo",
    "DeviceInfo",
    "BackupManifest",
    "RestorePhase",
]
