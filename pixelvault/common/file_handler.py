"""JSON 文件处理器

提供统一的 JSON 文件读写操作，写入时先写临时文件再替换
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from loguru import logger


class JsonFileHandler:
    """JSON 文件处理器"""

    def __init__(self, base_path: Path):
        """初始化文件处理器

        Args:
            base_path: 基础路径
        """
        self.base_path = Path(base_path)

    def load(self, filename: str, default: Any = None) -> Any:
        """加载 JSON 文件

        Args:
            filename: 文件名
            default: 文件不存在或无法解析时的默认值

        Returns:
            解析后的数据或默认值
        """
        file_path = self.base_path / filename
        if not file_path.exists():
            return default
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"加载文件失败 {filename}: {e}")
            return default

    def save(self, filename: str, data: Any, indent: int = 2) -> bool:
        """保存 JSON 文件

        Args:
            filename: 文件名
            data: 要保存的数据
            indent: 缩进空格数

        Returns:
            是否保存成功
        """
        file_path = self.base_path / filename
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=indent, ensure_ascii=False)
            tmp_path.replace(file_path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"保存文件失败 {filename}: {e}")
            return False

    def delete(self, filename: str) -> bool:
        """删除文件

        Returns:
            是否删除成功（文件不存在也视为成功）
        """
        file_path = self.base_path / filename
        try:
            file_path.unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"删除文件失败 {filename}: {e}")
            return False

    async def load_async(self, filename: str, default: Any = None) -> Any:
        return await asyncio.to_thread(self.load, filename, default)

    async def save_async(self, filename: str, data: Any, indent: int = 2) -> bool:
        return await asyncio.to_thread(self.save, filename, data, indent)

    async def delete_async(self, filename: str) -> bool:
        return await asyncio.to_thread(self.delete, filename)


__all__ = ["JsonFileHandler"]
