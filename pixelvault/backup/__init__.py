"""备份与恢复

导出 .pxpl 备份、识别旧版备份格式，并以事务方式恢复选中的数据模块
"""

from .constants import (
    BACKUP_SCHEMA_VERSION,
    BACKUP_FILE_EXTENSION,
    BackupSection,
    BackupManifest,
    BackupModuleInfo,
    DeviceInfo,
)
from .models import (
    RestorePlan,
    ValidationError,
    BackupValidationResult,
    Valid,
    Invalid,
    RestoreResult,
    Success,
    PartialFailure,
    TotalFailure,
    BackupTransferProgressUpdate,
    BackupHistoryEntry,
)
from .errors import (
    BackupError,
    BackupReadError,
    UnsupportedFormatError,
    BackupValidationFailed,
    BackupExportError,
    RestorePlanError,
)
from .format import BackupFormat, BackupFormatDetector, BackupReader, BackupWriter
from .modules import BackupModuleHandler, ModuleRegistry, build_default_registry
from .validation import ValidationPipeline
from .restore import RestorePlanner, RestoreExecutor
from .history import BackupHistoryRepository
from .path_manager import PathManager
from .manager import BackupManager, create_backup_manager

__all__ = [
    "BACKUP_SCHEMA_VERSION",
    "BACKUP_FILE_EXTENSION",
    "BackupSection",
    "BackupManifest",
    "BackupModuleInfo",
    "DeviceInfo",
    "RestorePlan",
    "ValidationError",
    "BackupValidationResult",
    "Valid",
    "Invalid",
    "RestoreResult",
    "Success",
    "PartialFailure",
    "TotalFailure",
    "BackupTransferProgressUpdate",
    "BackupHistoryEntry",
    "BackupError",
    "BackupReadError",
    "UnsupportedFormatError",
    "BackupValidationFailed",
    "BackupExportError",
    "RestorePlanError",
    "BackupFormat",
    "BackupFormatDetector",
    "BackupReader",
    "BackupWriter",
    "BackupModuleHandler",
    "ModuleRegistry",
    "build_default_registry",
    "ValidationPipeline",
    "RestorePlanner",
    "RestoreExecutor",
    "BackupHistoryRepository",
    "PathManager",
    "BackupManager",
    "create_backup_manager",
]
