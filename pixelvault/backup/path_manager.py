"""路径管理器

统一管理数据目录下的备份文件、历史记录和本地存储路径
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import BACKUP_FILE_EXTENSION


@dataclass
class VaultPaths:
    """数据路径配置"""

    data_dir: Path
    """数据目录"""

    backups_dir: Path
    """备份输出目录"""

    logs_dir: Path
    """日志目录"""

    history_file: Path
    """备份历史文件"""

    preferences_file: Path
    """偏好存储文件"""

    library_db: Path
    """音乐库数据库（记录类模块与艺术家）"""


class PathManager:
    """路径管理器"""

    def __init__(self, data_dir: Path):
        """初始化路径管理器

        Args:
            data_dir: 数据目录
        """
        self.data_dir = Path(data_dir)
        self.paths = VaultPaths(
            data_dir=self.data_dir,
            backups_dir=self.data_dir / "backups",
            logs_dir=self.data_dir / "logs",
            history_file=self.data_dir / "backup_history.json",
            preferences_file=self.data_dir / "preferences.json",
            library_db=self.data_dir / "library.db",
        )

    def ensure_directories(self) -> None:
        """确保所有必要的目录存在"""
        for path in (self.paths.data_dir, self.paths.backups_dir, self.paths.logs_dir):
            path.mkdir(parents=True, exist_ok=True)

    def get_backup_file(self, name: Optional[str] = None) -> Path:
        """获取备份文件路径

        Args:
            name: 文件名（不含扩展名），默认按当前时间生成

        Returns:
            备份文件路径
        """
        if not name:
            name = f"pixelvault_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        if not name.endswith(BACKUP_FILE_EXTENSION):
            name += BACKUP_FILE_EXTENSION
        return self.paths.backups_dir / name

    def get_backup_list(self) -> list[Path]:
        """获取备份目录中的备份文件，按修改时间倒序"""
        if not self.paths.backups_dir.exists():
            return []
        backups = [
            item for item in self.paths.backups_dir.iterdir()
            if item.is_file() and item.suffix == BACKUP_FILE_EXTENSION
        ]
        return sorted(backups, key=lambda x: x.stat().st_mtime, reverse=True)

    @staticmethod
    def format_size(size: int) -> str:
        """格式化文件大小

        Args:
            size: 字节大小

        Returns:
            如 "1.50 MB"
        """
        value = float(size)
        for unit in ("B", "KB", "MB", "GB"):
            if value < 1024 or unit == "GB":
                return f"{value:.2f} {unit}" if unit != "B" else f"{int(value)} B"
            value /= 1024
        return f"{value:.2f} GB"


__all__ = ["VaultPaths", "PathManager"]
