"""备份异常

阶段内部以异常传递错误，由恢复执行器在阶段边界统一转换为 RestoreResult
"""

from typing import Optional, List


class BackupError(Exception):
    """备份系统异常基类"""


class BackupReadError(BackupError):
    """读取备份文件失败"""


class UnsupportedFormatError(BackupReadError):
    """无法识别的备份格式"""


class ArchiveCorruptedError(BackupReadError):
    """备份容器损坏或缺少清单"""


class LegacyFormatError(BackupReadError):
    """旧版 JSON 备份无法解析"""


class ModuleNotFoundInArchive(BackupReadError):
    """备份中不包含指定模块"""

    def __init__(self, module_key: str):
        super().__init__(f"备份中不包含模块: {module_key}")
        self.module_key = module_key


class BackupWriteError(BackupError):
    """写入备份文件失败"""


class BackupExportError(BackupError):
    """导出备份失败"""


class RestorePlanError(BackupError):
    """构建恢复计划失败"""


class BackupValidationFailed(BackupError):
    """备份文件或清单校验未通过"""

    def __init__(self, message: str, errors: Optional[List] = None):
        super().__init__(message)
        self.errors = errors or []


__all__ = [
    "BackupError",
    "BackupReadError",
    "UnsupportedFormatError",
    "ArchiveCorruptedError",
    "LegacyFormatError",
    "ModuleNotFoundInArchive",
    "BackupWriteError",
    "BackupExportError",
    "RestorePlanError",
    "BackupValidationFailed",
]
