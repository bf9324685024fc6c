"""旧版备份适配器测试"""

import json

import pytest

from pixelvault.backup.errors import LegacyFormatError
from pixelvault.backup.format.checksums import payload_checksum
from pixelvault.backup.format.legacy_adapter import LEGACY_APP_VERSION, LegacyPayloadAdapter


@pytest.fixture
def adapter():
    return LegacyPayloadAdapter()


def _pref(key, value, value_type="string"):
    return {"key": key, "type": value_type, "value": value}


class TestV2Documents:
    """测试 v2 文档"""

    def test_favorites_only(self, adapter):
        """只有收藏的 v2 文档"""
        doc = {
            "formatVersion": 2,
            "exportedAtEpochMs": 1_700_000_000_000,
            "availableSections": ["favorites"],
            "favorites": [{"songId": 1}, {"songId": 2}],
        }

        manifest, modules = adapter.adapt(json.dumps(doc))

        assert manifest.schema_version == 2
        assert manifest.app_version == LEGACY_APP_VERSION
        assert manifest.app_version_code == 0
        assert manifest.created_at == 1_700_000_000_000
        assert list(modules) == ["favorites"]
        assert json.loads(modules["favorites"]) == [{"songId": 1}, {"songId": 2}]

        info = manifest.modules["favorites"]
        assert info.entry_count == 2
        assert info.checksum == payload_checksum(modules["favorites"])
        assert info.size_bytes == len(modules["favorites"].encode("utf-8"))

    def test_sections_not_listed_are_dropped(self, adapter):
        """不在 availableSections 中的字段不输出"""
        doc = {
            "formatVersion": 2,
            "availableSections": ["lyrics"],
            "favorites": [{"songId": 1}],
            "lyrics": [{"songId": 1, "content": "la la"}],
        }

        manifest, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"lyrics"}
        assert set(manifest.modules) == {"lyrics"}

    def test_empty_lists_are_dropped(self, adapter):
        """空数组不输出"""
        doc = {
            "formatVersion": 2,
            "availableSections": ["favorites", "playlists"],
            "favorites": [],
            "playlists": [_pref("user_playlists_json_v1", "[]")],
        }

        _, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"playlists"}

    def test_non_ascii_content_preserved(self, adapter):
        """非 ASCII 字符原样保留"""
        doc = {
            "formatVersion": 2,
            "availableSections": ["search_history"],
            "searchHistory": [{"query": "周杰伦"}],
        }

        _, modules = adapter.adapt(json.dumps(doc))

        assert "周杰伦" in modules["search_history"]


class TestV1Documents:
    """测试 v1 文档的偏好拆分"""

    def test_preferences_split_by_owner(self, adapter):
        """混合的偏好数组按键拆分到各模块"""
        doc = {
            "formatVersion": 1,
            "availableSections": ["playlists", "global_settings", "quick_fill", "equalizer"],
            "preferences": [
                _pref("user_playlists_json_v1", "[]"),
                _pref("theme_mode", "dark"),
                _pref("equalizer_preset", "rock"),
                _pref("quick_fill_enabled", True, "boolean"),
                _pref("playlists_sort_option", "name"),
            ],
        }

        manifest, modules = adapter.adapt(json.dumps(doc))

        assert manifest.schema_version == 1
        assert [e["key"] for e in json.loads(modules["playlists"])] == [
            "user_playlists_json_v1",
            "playlists_sort_option",
        ]
        assert [e["key"] for e in json.loads(modules["global_settings"])] == ["theme_mode"]
        assert [e["key"] for e in json.loads(modules["equalizer"])] == ["equalizer_preset"]
        assert [e["key"] for e in json.loads(modules["quick_fill"])] == ["quick_fill_enabled"]

    def test_missing_format_version_defaults_to_v1(self, adapter):
        """缺少 formatVersion 时按 v1 处理"""
        doc = {
            "availableSections": ["global_settings"],
            "preferences": [_pref("theme_mode", "light")],
        }

        manifest, modules = adapter.adapt(json.dumps(doc))

        assert manifest.schema_version == 1
        assert manifest.created_at == 0
        assert set(modules) == {"global_settings"}

    def test_bucket_not_available(self, adapter):
        """拆分出的模块不在 availableSections 中时丢弃"""
        doc = {
            "formatVersion": 1,
            "availableSections": ["global_settings"],
            "preferences": [
                _pref("theme_mode", "dark"),
                _pref("user_playlists_json_v1", "[]"),
            ],
        }

        _, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"global_settings"}

    def test_quick_fill_and_equalizer_follow_global_settings(self, adapter):
        """v1 只列出 global_settings 时，快速填充和均衡器偏好不会丢失"""
        doc = {
            "formatVersion": 1,
            "availableSections": ["playlists", "global_settings"],
            "preferences": [
                _pref("theme_mode", "dark"),
                _pref("quick_fill_enabled", True, "boolean"),
                _pref("equalizer_preset", "rock"),
            ],
        }

        manifest, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"global_settings", "quick_fill", "equalizer"}
        assert set(manifest.modules) == set(modules)
        assert [e["key"] for e in json.loads(modules["global_settings"])] == ["theme_mode"]
        assert [e["key"] for e in json.loads(modules["quick_fill"])] == ["quick_fill_enabled"]
        assert [e["key"] for e in json.loads(modules["equalizer"])] == ["equalizer_preset"]

    def test_quick_fill_dropped_without_global_settings(self, adapter):
        doc = {
            "formatVersion": 1,
            "availableSections": ["playlists"],
            "preferences": [
                _pref("user_playlists_json_v1", "[]"),
                _pref("quick_fill_enabled", True, "boolean"),
            ],
        }

        _, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"playlists"}

    def test_record_fields_shared_with_v2(self, adapter):
        """记录型字段在 v1 中同样读取"""
        doc = {
            "formatVersion": 1,
            "availableSections": ["playback_history"],
            "playbackHistory": [{"songId": "7", "timestamp": 1, "durationMs": 1000}],
        }

        _, modules = adapter.adapt(json.dumps(doc))

        assert set(modules) == {"playback_history"}


class TestAdapterErrors:
    """测试错误输入"""

    def test_invalid_json(self, adapter):
        with pytest.raises(LegacyFormatError):
            adapter.adapt("{not json")

    def test_root_must_be_object(self, adapter):
        with pytest.raises(LegacyFormatError):
            adapter.adapt("[1, 2, 3]")

    def test_missing_available_sections_yields_nothing(self, adapter):
        """没有 availableSections 时不输出任何模块"""
        manifest, modules = adapter.adapt(json.dumps({"formatVersion": 2, "favorites": [{"songId": 1}]}))

        assert modules == {}
        assert manifest.modules == {}
