"""测试公共夹具"""

import tempfile
import time
from pathlib import Path
from types import SimpleNamespace

import pytest

from pixelvault.backup.constants import BackupManifest
from pixelvault.backup.format.writer import BackupWriter
from pixelvault.backup.modules.registry import RECORD_HANDLERS, build_default_registry
from pixelvault.backup.stores import JsonPreferenceStore, SqliteArtistStore, SqliteRecordStore


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def library(temp_dir):
    """本地存储：偏好文件 + SQLite 记录表 + 艺术家表"""
    db_path = temp_dir / "library.db"
    return SimpleNamespace(
        preferences=JsonPreferenceStore(temp_dir / "preferences.json"),
        records={
            handler_cls.section: SqliteRecordStore(db_path, handler_cls.section.key)
            for handler_cls in RECORD_HANDLERS
        },
        artists=SqliteArtistStore(db_path),
    )


@pytest.fixture
def registry(library):
    """包含全部模块的注册表"""
    return build_default_registry(library.preferences, library.records, library.artists)


@pytest.fixture
def make_archive():
    """返回构建 PXPL v3 备份字节的函数"""

    def _make(payloads, created_at=None):
        manifest = BackupManifest(
            app_version="3.0.0",
            created_at=created_at if created_at is not None else int(time.time() * 1000),
        )
        _, data = BackupWriter().build_archive(manifest, payloads)
        return data

    return _make
