"""数据存储

模块处理器依赖的外部存储接口及本地实现：
- PreferenceStore: 多个模块共享的键值偏好存储
- RecordStore: 单个模块独占的记录列表存储
- ArtistStore: 艺术家元数据存储（只允许更新图片链接）

存储方法均为同步实现，由处理器通过 asyncio.to_thread 调用
"""

import json
import re
import sqlite3
import threading
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

from loguru import logger

PREFERENCE_TYPES = ("string", "int", "long", "boolean", "float", "double", "string_set")
"""合法的偏好值类型"""

_TABLE_NAME_PATTERN = re.compile(r"^[a-z_]+$")


class PreferenceStore(Protocol):
    """键值偏好存储接口"""

    def export_entries(self) -> list[dict[str, Any]]: ...

    def import_entries(self, entries: Iterable[dict[str, Any]]) -> None: ...

    def clear_keys(self, keys: Iterable[str]) -> None: ...

    def clear_except_keys(self, keys: Iterable[str]) -> None: ...


class RecordStore(Protocol):
    """记录列表存储接口"""

    def read_all(self) -> list[Any]: ...

    def replace_all(self, records: Iterable[Any]) -> None: ...


class ArtistStore(Protocol):
    """艺术家存储接口"""

    def list_artists(self) -> list[dict[str, Any]]: ...

    def add_artist(self, name: str, image_url: Optional[str] = None) -> int: ...

    def update_image_url(self, name: str, image_url: Optional[str]) -> bool: ...


class JsonPreferenceStore:
    """基于 JSON 文件的偏好存储

    文件内容为 {键: {"type": 类型, "value": 值}}，条目按写入顺序保存
    """

    def __init__(self, file_path: Path):
        """初始化偏好存储

        Args:
            file_path: JSON 文件路径
        """
        self.file_path = Path(file_path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self.file_path.exists():
            return {}
        with open(self.file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"偏好文件格式错误: {self.file_path}")
        return data

    def _write(self, data: dict[str, dict[str, Any]]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.file_path)

    def get(self, key: str, default: Any = None) -> Any:
        """读取单个偏好值"""
        with self._lock:
            entry = self._read().get(key)
        return entry.get("value", default) if entry else default

    def set(self, key: str, value: Any, value_type: str = "string") -> None:
        """写入单个偏好值"""
        if value_type not in PREFERENCE_TYPES:
            raise ValueError(f"不支持的偏好类型: {value_type}")
        with self._lock:
            data = self._read()
            data[key] = {"type": value_type, "value": value}
            self._write(data)

    def export_entries(self) -> list[dict[str, Any]]:
        """导出所有偏好条目"""
        with self._lock:
            data = self._read()
        return [
            {"key": key, "type": entry.get("type", "string"), "value": entry.get("value")}
            for key, entry in data.items()
        ]

    def import_entries(self, entries: Iterable[dict[str, Any]]) -> None:
        """导入偏好条目，覆盖同名键"""
        with self._lock:
            data = self._read()
            for entry in entries:
                key = entry.get("key")
                if not key:
                    logger.warning(f"跳过缺少键名的偏好条目: {entry}")
                    continue
                data[key] = {
                    "type": entry.get("type", "string"),
                    "value": entry.get("value"),
                }
            self._write(data)

    def clear_keys(self, keys: Iterable[str]) -> None:
        """删除指定键"""
        keys = set(keys)
        with self._lock:
            data = self._read()
            self._write({k: v for k, v in data.items() if k not in keys})

    def clear_except_keys(self, keys: Iterable[str]) -> None:
        """删除指定键以外的所有键"""
        keys = set(keys)
        with self._lock:
            data = self._read()
            self._write({k: v for k, v in data.items() if k in keys})


class SqliteRecordStore:
    """基于 SQLite 的记录列表存储

    每个模块一张表，记录以 JSON 文本保存，按插入顺序读取
    """

    def __init__(self, db_path: Path, table_name: str):
        """初始化记录存储

        Args:
            db_path: 数据库文件路径
            table_name: 表名（仅允许小写字母和下划线）
        """
        if not _TABLE_NAME_PATTERN.match(table_name):
            raise ValueError(f"非法表名: {table_name}")
        self.db_path = Path(db_path)
        self.table_name = table_name
        self._ensure_table()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def _ensure_table(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self.table_name} ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, data TEXT NOT NULL)"
            )
            conn.commit()
        finally:
            conn.close()

    def read_all(self) -> list[Any]:
        """读取所有记录"""
        conn = self._connect()
        try:
            cursor = conn.execute(f"SELECT data FROM {self.table_name} ORDER BY id")
            return [json.loads(row[0]) for row in cursor.fetchall()]
        finally:
            conn.close()

    def replace_all(self, records: Iterable[Any]) -> None:
        """在单个事务中替换全部记录"""
        rows = [(json.dumps(r, ensure_ascii=False),) for r in records]
        conn = self._connect()
        try:
            with conn:
                conn.execute(f"DELETE FROM {self.table_name}")
                conn.executemany(
                    f"INSERT INTO {self.table_name} (data) VALUES (?)", rows
                )
        finally:
            conn.close()
        logger.debug(f"表 {self.table_name} 已替换为 {len(rows)} 条记录")


class SqliteArtistStore:
    """基于 SQLite 的艺术家存储"""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        conn = self._connect()
        try:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS artists ("
                "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "name TEXT NOT NULL UNIQUE, "
                "image_url TEXT)"
            )
            conn.commit()
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def list_artists(self) -> list[dict[str, Any]]:
        """列出所有艺术家"""
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT id, name, image_url FROM artists ORDER BY id")
            return [
                {"id": row[0], "name": row[1], "image_url": row[2]}
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def add_artist(self, name: str, image_url: Optional[str] = None) -> int:
        """添加艺术家，返回其ID"""
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute(
                    "INSERT INTO artists (name, image_url) VALUES (?, ?)",
                    (name, image_url),
                )
            return cursor.lastrowid
        finally:
            conn.close()

    def update_image_url(self, name: str, image_url: Optional[str]) -> bool:
        """更新已存在艺术家的图片链接

        Returns:
            艺术家是否存在
        """
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE artists SET image_url = ? WHERE name = ?",
                    (image_url, name),
                )
            return cursor.rowcount > 0
        finally:
            conn.close()


__all__ = [
    "PREFERENCE_TYPES",
    "PreferenceStore",
    "RecordStore",
    "ArtistStore",
    "JsonPreferenceStore",
    "SqliteRecordStore",
    "SqliteArtistStore",
]
