"""模块处理器与注册表测试"""

import json

import pytest

from pixelvault.backup.constants import BackupSection
from pixelvault.backup.modules import (
    ArtistImagesModuleHandler,
    FavoritesModuleHandler,
    GlobalSettingsModuleHandler,
    ModuleRegistry,
    PlaybackHistoryModuleHandler,
    PlaylistsModuleHandler,
    build_default_registry,
)


def _keys(payload):
    return sorted(entry["key"] for entry in json.loads(payload))


@pytest.fixture
def seeded_preferences(library):
    store = library.preferences
    store.set("user_playlists_json_v1", "[1]")
    store.set("playlists_sort_option", "name")
    store.set("theme_mode", "dark")
    store.set("equalizer_preset", "rock")
    store.set("quick_fill_enabled", True, "boolean")
    return store


class TestPreferenceHandlers:
    """测试共享偏好存储的处理器"""

    @pytest.mark.asyncio
    async def test_export_only_owned_keys(self, seeded_preferences):
        """每个处理器只导出自己的键"""
        playlists = PlaylistsModuleHandler(seeded_preferences)
        global_settings = GlobalSettingsModuleHandler(seeded_preferences)

        assert _keys(await playlists.export()) == ["playlists_sort_option", "user_playlists_json_v1"]
        assert _keys(await global_settings.export()) == ["theme_mode"]
        assert await playlists.count_entries() == 2

    @pytest.mark.asyncio
    async def test_restore_keeps_other_modules(self, seeded_preferences):
        """恢复歌单不影响其它模块的键"""
        handler = PlaylistsModuleHandler(seeded_preferences)
        payload = json.dumps([{"key": "user_playlists_json_v1", "type": "string", "value": "[2]"}])

        await handler.restore(payload)

        assert seeded_preferences.get("user_playlists_json_v1") == "[2]"
        assert seeded_preferences.get("playlists_sort_option") is None
        assert seeded_preferences.get("theme_mode") == "dark"
        assert seeded_preferences.get("equalizer_preset") == "rock"

    @pytest.mark.asyncio
    async def test_restore_ignores_foreign_keys(self, seeded_preferences):
        """负载中混入的其它模块键不写入"""
        handler = PlaylistsModuleHandler(seeded_preferences)
        payload = json.dumps([
            {"key": "user_playlists_json_v1", "type": "string", "value": "[3]"},
            {"key": "theme_mode", "type": "string", "value": "light"},
        ])

        await handler.restore(payload)

        assert seeded_preferences.get("theme_mode") == "dark"

    @pytest.mark.asyncio
    async def test_global_settings_restore(self, seeded_preferences):
        """全局设置替换所有非模块键"""
        seeded_preferences.set("old_setting", "x")
        handler = GlobalSettingsModuleHandler(seeded_preferences)
        payload = json.dumps([{"key": "theme_mode", "type": "string", "value": "light"}])

        await handler.restore(payload)

        assert seeded_preferences.get("theme_mode") == "light"
        assert seeded_preferences.get("old_setting") is None
        assert seeded_preferences.get("user_playlists_json_v1") == "[1]"
        assert seeded_preferences.get("quick_fill_enabled") is True

    @pytest.mark.asyncio
    async def test_rollback_restores_snapshot(self, seeded_preferences):
        """回滚到快照"""
        handler = PlaylistsModuleHandler(seeded_preferences)
        snapshot = await handler.snapshot()

        await handler.restore("[]")
        assert seeded_preferences.get("user_playlists_json_v1") is None

        await handler.rollback(snapshot)
        assert await handler.export() == snapshot

    @pytest.mark.asyncio
    async def test_non_array_payload(self, seeded_preferences):
        with pytest.raises(ValueError):
            await PlaylistsModuleHandler(seeded_preferences).restore('{"key": "x"}')


class TestRecordHandlers:
    """测试记录类处理器"""

    @pytest.mark.asyncio
    async def test_restore_replaces_all(self, library):
        """恢复整体替换记录"""
        store = library.records[BackupSection.FAVORITES]
        store.replace_all([{"songId": 1}, {"songId": 2}])
        handler = FavoritesModuleHandler(store)

        await handler.restore('[{"songId":3}]')

        assert store.read_all() == [{"songId": 3}]
        assert await handler.count_entries() == 1
        assert await handler.export() == '[{"songId":3}]'

    @pytest.mark.asyncio
    async def test_invalid_payload_leaves_store(self, library):
        """负载无法解析时不修改存储"""
        store = library.records[BackupSection.FAVORITES]
        store.replace_all([{"songId": 1}])
        handler = FavoritesModuleHandler(store)

        with pytest.raises(ValueError):
            await handler.restore("not json")

        assert store.read_all() == [{"songId": 1}]

    @pytest.mark.asyncio
    async def test_playback_history_normalized(self, library):
        """播放历史统一为标准字段"""
        store = library.records[BackupSection.PLAYBACK_HISTORY]
        handler = PlaybackHistoryModuleHandler(store)

        await handler.restore('[{"songId": 5, "timestamp": 10, "durationMs": 200, "extra": 1}]')

        assert store.read_all() == [{
            "songId": "5",
            "timestamp": 10,
            "durationMs": 200,
            "startTimestamp": None,
            "endTimestamp": None,
        }]

    @pytest.mark.asyncio
    async def test_playback_history_rejects_non_object(self, library):
        handler = PlaybackHistoryModuleHandler(library.records[BackupSection.PLAYBACK_HISTORY])

        with pytest.raises(ValueError):
            await handler.restore("[1, 2]")


class TestArtistImagesHandler:
    """测试艺术家图片处理器"""

    @pytest.fixture
    def artists(self, library):
        store = library.artists
        store.add_artist("Alpha", "https://img.example.com/a.jpg")
        store.add_artist("Beta")
        return store

    @pytest.mark.asyncio
    async def test_export_only_with_image(self, artists):
        handler = ArtistImagesModuleHandler(artists)

        assert json.loads(await handler.export()) == [
            {"artistName": "Alpha", "imageUrl": "https://img.example.com/a.jpg"}
        ]
        assert await handler.count_entries() == 1

    @pytest.mark.asyncio
    async def test_restore_updates_existing_only(self, artists):
        """只更新已存在的艺术家，不新增"""
        handler = ArtistImagesModuleHandler(artists)
        payload = json.dumps([
            {"artistName": "Beta", "imageUrl": "https://img.example.com/b.jpg"},
            {"artistName": "Gamma", "imageUrl": "https://img.example.com/g.jpg"},
        ])

        await handler.restore(payload)

        by_name = {a["name"]: a["image_url"] for a in artists.list_artists()}
        assert by_name == {
            "Alpha": "https://img.example.com/a.jpg",
            "Beta": "https://img.example.com/b.jpg",
        }

    @pytest.mark.asyncio
    async def test_restore_drops_unsafe_url(self, artists):
        """非 http(s) 链接被清除"""
        handler = ArtistImagesModuleHandler(artists)

        await handler.restore(json.dumps([{"artistName": "Alpha", "imageUrl": "javascript:alert(1)"}]))

        by_name = {a["name"]: a["image_url"] for a in artists.list_artists()}
        assert by_name["Alpha"] is None

    @pytest.mark.asyncio
    async def test_rollback_clears_new_image(self, artists):
        """快照包含无图片的艺术家，回滚能清除新写入的链接"""
        handler = ArtistImagesModuleHandler(artists)
        snapshot = await handler.snapshot()

        await handler.restore(json.dumps([{"artistName": "Beta", "imageUrl": "https://x.example.com/b.png"}]))
        await handler.rollback(snapshot)

        by_name = {a["name"]: a["image_url"] for a in artists.list_artists()}
        assert by_name == {"Alpha": "https://img.example.com/a.jpg", "Beta": None}

    @pytest.mark.asyncio
    async def test_rollback_keeps_non_http_url(self, artists):
        """回滚不清洗链接，本地 content:// 链接原样还原"""
        artists.update_image_url("Beta", "content://media/1.jpg")
        handler = ArtistImagesModuleHandler(artists)
        snapshot = await handler.snapshot()

        await handler.restore(json.dumps([{"artistName": "Beta", "imageUrl": "https://x.example.com/b.png"}]))
        await handler.rollback(snapshot)

        by_name = {a["name"]: a["image_url"] for a in artists.list_artists()}
        assert by_name["Beta"] == "content://media/1.jpg"


class TestModuleRegistry:
    """测试模块注册表"""

    def test_default_registry_order(self, registry):
        """按 BackupSection 声明顺序注册全部模块"""
        assert registry.sections() == list(BackupSection)
        assert len(registry) == len(BackupSection)
        assert BackupSection.LYRICS in registry

    def test_duplicate_registration(self, library):
        registry = ModuleRegistry([FavoritesModuleHandler(library.records[BackupSection.FAVORITES])])

        with pytest.raises(ValueError):
            registry.register(FavoritesModuleHandler(library.records[BackupSection.FAVORITES]))

    def test_missing_record_store_is_skipped(self, library):
        """未提供存储的记录模块不注册"""
        records = dict(library.records)
        del records[BackupSection.LYRICS]

        registry = build_default_registry(library.preferences, records, library.artists)

        assert registry.get(BackupSection.LYRICS) is None
        assert BackupSection.LYRICS not in registry
        assert len(registry) == len(BackupSection) - 1

    def test_iterate_handlers(self, registry):
        assert [h.section for h in registry] == registry.sections()
