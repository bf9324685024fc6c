"""旧版备份适配器

将 v1/v2 的单文档 JSON 备份转换为当前的清单 + 模块负载结构。
纯函数实现，不做任何 I/O。

v1 文档把多个逻辑模块的偏好项混在同一个 preferences 数组里，
按键的归属拆分到各自模块；v2 文档每个模块一个顶层数组。
两种版本都只输出 availableSections 中列出且非空的模块，
v1 的快速填充和均衡器偏好随 global_settings 一起输出。
"""

import json
from typing import Any

from loguru import logger

from ..constants import (
    EQUALIZER_KEYS,
    PLAYLIST_KEYS,
    QUICK_FILL_KEYS,
    BackupManifest,
    BackupModuleInfo,
    DeviceInfo,
)
from ..errors import LegacyFormatError
from .checksums import build_module_info, canonical_json

LEGACY_APP_VERSION = "legacy"

# v2 起各模块独立的顶层字段
V2_PREFERENCE_FIELDS = (
    ("playlists", "playlists"),
    ("globalSettings", "global_settings"),
)

# v1 的 availableSections 不会列出 v3 才拆出的偏好模块，
# 这些模块随 global_settings 一起输出
V1_SECTION_GATES = {
    "quick_fill": "global_settings",
    "equalizer": "global_settings",
}

# 所有版本共有的记录型字段
COMMON_RECORD_FIELDS = (
    ("favorites", "favorites"),
    ("lyrics", "lyrics"),
    ("searchHistory", "search_history"),
    ("transitions", "transitions"),
    ("engagementStats", "engagement_stats"),
    ("playbackHistory", "playback_history"),
)


class LegacyPayloadAdapter:
    """旧版备份适配器"""

    def adapt(self, legacy_json: str) -> tuple[BackupManifest, dict[str, str]]:
        """适配旧版备份文档

        Args:
            legacy_json: 旧版备份的 JSON 文本

        Returns:
            (清单, {模块键: 负载})

        Raises:
            LegacyFormatError: JSON 无法解析或根节点不是对象
        """
        try:
            root = json.loads(legacy_json)
        except (ValueError, TypeError) as e:
            raise LegacyFormatError(f"旧版备份 JSON 解析失败: {e}") from e

        if not isinstance(root, dict):
            raise LegacyFormatError("旧版备份根节点必须是 JSON 对象")

        format_version = _as_int(root.get("formatVersion"), 1)
        exported_at = _as_int(root.get("exportedAtEpochMs"), 0)
        sections = root.get("availableSections")
        available = (
            {str(s) for s in sections} if isinstance(sections, list) else set()
        )

        modules: dict[str, str] = {}
        infos: dict[str, BackupModuleInfo] = {}

        def emit(module_key: str, entries: Any, gate: str = None) -> None:
            if not isinstance(entries, list) or not entries:
                return
            if module_key not in available and gate not in available:
                return
            payload = canonical_json(entries)
            modules[module_key] = payload
            infos[module_key] = build_module_info(payload)

        if format_version == 1:
            for module_key, entries in self._split_preferences(root.get("preferences")):
                emit(module_key, entries, V1_SECTION_GATES.get(module_key))
        else:
            for field_name, module_key in V2_PREFERENCE_FIELDS:
                emit(module_key, root.get(field_name))

        for field_name, module_key in COMMON_RECORD_FIELDS:
            emit(module_key, root.get(field_name))

        manifest = BackupManifest(
            schema_version=format_version,
            app_version=LEGACY_APP_VERSION,
            app_version_code=0,
            created_at=exported_at,
            device_info=DeviceInfo(),
            modules=infos,
        )
        logger.debug(
            f"旧版备份适配完成: formatVersion={format_version}, 模块={list(modules)}"
        )
        return manifest, modules

    @staticmethod
    def _split_preferences(preferences: Any) -> list[tuple[str, list]]:
        """按键归属拆分 v1 的合并偏好数组"""
        buckets: dict[str, list] = {
            "playlists": [],
            "quick_fill": [],
            "equalizer": [],
            "global_settings": [],
        }
        if not isinstance(preferences, list):
            return list(buckets.items())

        for entry in preferences:
            key = entry.get("key", "") if isinstance(entry, dict) else ""
            if key in PLAYLIST_KEYS:
                buckets["playlists"].append(entry)
            elif key in QUICK_FILL_KEYS:
                buckets["quick_fill"].append(entry)
            elif key in EQUALIZER_KEYS:
                buckets["equalizer"].append(entry)
            else:
                buckets["global_settings"].append(entry)
        return list(buckets.items())


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


__all__ = ["LegacyPayloadAdapter", "LEGACY_APP_VERSION"]
