"""恢复计划测试"""

import io
import json
import zipfile
from unittest.mock import patch

import pytest

from pixelvault.backup.constants import BackupSection
from pixelvault.backup.errors import RestorePlanError
from pixelvault.backup.format.reader import BackupReader
from pixelvault.backup.modules import FavoritesModuleHandler, ModuleRegistry
from pixelvault.backup.restore import RestorePlanner


@pytest.fixture
def planner(registry):
    return RestorePlanner(BackupReader(), registry)


class TestRestorePlanner:
    """测试恢复计划构建"""

    @pytest.mark.asyncio
    async def test_plan_from_current_archive(self, planner, make_archive):
        """当前格式的备份：可恢复模块按清单顺序，默认全选"""
        data = make_archive({
            "lyrics": '[{"songId":1,"content":"a"}]',
            "favorites": '[{"songId":1},{"songId":2}]',
        })

        plan = await planner.build_restore_plan(data)

        assert plan.available_modules == (BackupSection.LYRICS, BackupSection.FAVORITES)
        assert plan.selected_modules == plan.available_modules
        assert plan.module_details[BackupSection.FAVORITES].entry_count == 2
        assert plan.warnings == ()
        assert plan.backup_uri.startswith("<")

    @pytest.mark.asyncio
    async def test_unknown_modules_dropped(self, planner, make_archive):
        """清单中的未知模块键被丢弃"""
        data = make_archive({"favorites": "[]", "mystery_module": "[]"})

        plan = await planner.build_restore_plan(data)

        assert plan.available_modules == (BackupSection.FAVORITES,)

    @pytest.mark.asyncio
    async def test_legacy_archive_warning(self, planner):
        """旧版格式产生警告"""
        doc = {
            "formatVersion": 2,
            "exportedAtEpochMs": 1_700_000_000_000,
            "availableSections": ["favorites"],
            "favorites": [{"songId": 1}],
        }

        plan = await planner.build_restore_plan(json.dumps(doc).encode("utf-8"))

        assert plan.manifest.schema_version == 2
        assert plan.available_modules == (BackupSection.FAVORITES,)
        assert len(plan.warnings) == 1
        assert "v2" in plan.warnings[0]

    @pytest.mark.asyncio
    async def test_unregistered_module_warning(self, library, make_archive):
        """没有处理器的模块仍列出，但给出警告"""
        registry = ModuleRegistry([FavoritesModuleHandler(library.records[BackupSection.FAVORITES])])
        planner = RestorePlanner(BackupReader(), registry)

        plan = await planner.build_restore_plan(make_archive({"favorites": "[]", "lyrics": "[]"}))

        assert BackupSection.LYRICS in plan.available_modules
        assert len(plan.warnings) == 1
        assert "歌词" in plan.warnings[0]

    @pytest.mark.asyncio
    async def test_unreadable_archive(self, planner):
        with pytest.raises(RestorePlanError):
            await planner.build_restore_plan(b"garbage bytes that are not a backup")

    @pytest.mark.asyncio
    async def test_manifest_with_wrong_types(self, planner):
        """schemaVersion 为字符串时只抛出 RestorePlanError"""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("manifest.json", json.dumps({"schemaVersion": "2", "modules": {}}))

        with pytest.raises(RestorePlanError):
            await planner.build_restore_plan(b"PXPL" + buffer.getvalue())

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_plan_error(self, planner, make_archive):
        archive = make_archive({"favorites": "[]"})

        with patch.object(planner, "_build_plan", side_effect=TypeError("bad manifest")):
            with pytest.raises(RestorePlanError) as exc_info:
                await planner.build_restore_plan(archive)
        assert isinstance(exc_info.value.__cause__, TypeError)

    @pytest.mark.asyncio
    async def test_plan_from_file_path(self, planner, make_archive, temp_dir):
        path = temp_dir / "backup.pxpl"
        path.write_bytes(make_archive({"favorites": "[]"}))

        plan = await planner.build_restore_plan(path)

        assert plan.backup_uri == str(path)


class TestRestorePlanSelection:
    """测试重新选择模块"""

    @pytest.mark.asyncio
    async def test_selection_is_subset_of_available(self, planner, make_archive):
        plan = await planner.build_restore_plan(make_archive({"favorites": "[]", "lyrics": "[]"}))

        narrowed = plan.with_selection([
            BackupSection.LYRICS,
            BackupSection.EQUALIZER,
            BackupSection.LYRICS,
            BackupSection.FAVORITES,
        ])

        assert narrowed.selected_modules == (BackupSection.LYRICS, BackupSection.FAVORITES)
        assert set(narrowed.selected_modules) <= set(narrowed.available_modules)
        assert plan.selected_modules == (BackupSection.FAVORITES, BackupSection.LYRICS)

    @pytest.mark.asyncio
    async def test_plan_to_dict(self, planner, make_archive):
        plan = await planner.build_restore_plan(make_archive({"favorites": '[{"songId":1}]'}))

        data = plan.to_dict()

        assert data["available_modules"] == ["favorites"]
        assert data["module_details"]["favorites"]["entry_count"] == 1
