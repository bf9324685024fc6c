"""公共工具"""

from .file_handler import JsonFileHandler

__all__ = ["JsonFileHandler"]
