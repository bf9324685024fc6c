"""备份数据模型

恢复计划、校验结果、恢复结果、进度更新以及历史记录等数据结构
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from .constants import BackupManifest, BackupSection


@dataclass(frozen=True)
class ModuleRestoreDetail:
    """单个模块的恢复预览"""

    entry_count: int = 0
    """记录条数"""

    size_bytes: int = 0
    """数据大小（字节）"""

    will_overwrite: bool = True
    """恢复是否会覆盖现有数据"""

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "entry_count": self.entry_count,
            "size_bytes": self.size_bytes,
            "will_overwrite": self.will_overwrite,
        }


@dataclass(frozen=True)
class RestorePlan:
    """恢复计划

    由清单构建的只读视图，selected_modules 始终是 available_modules 的子集
    """

    manifest: BackupManifest
    """备份清单"""

    backup_uri: str
    """备份文件位置"""

    available_modules: tuple[BackupSection, ...]
    """可恢复的模块（清单顺序）"""

    selected_modules: tuple[BackupSection, ...]
    """选择恢复的模块（处理顺序）"""

    module_details: dict[BackupSection, ModuleRestoreDetail] = field(default_factory=dict)
    """模块恢复预览"""

    warnings: tuple[str, ...] = ()
    """警告列表"""

    def with_selection(self, sections: Iterable[BackupSection]) -> "RestorePlan":
        """按调用方给定的顺序重新选择模块

        不在 available_modules 中的模块会被忽略，重复项只保留第一次出现

        Args:
            sections: 期望恢复的模块

        Returns:
            新的恢复计划
        """
        selected: list[BackupSection] = []
        for section in sections:
            if section in self.available_modules and section not in selected:
                selected.append(section)
        return RestorePlan(
            manifest=self.manifest,
            backup_uri=self.backup_uri,
            available_modules=self.available_modules,
            selected_modules=tuple(selected),
            module_details=self.module_details,
            warnings=self.warnings,
        )

    def with_warnings(self, warnings: Iterable[str]) -> "RestorePlan":
        """追加警告，返回新的恢复计划"""
        return RestorePlan(
            manifest=self.manifest,
            backup_uri=self.backup_uri,
            available_modules=self.available_modules,
            selected_modules=self.selected_modules,
            module_details=self.module_details,
            warnings=self.warnings + tuple(warnings),
        )

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "backup_uri": self.backup_uri,
            "schema_version": self.manifest.schema_version,
            "app_version": self.manifest.app_version,
            "created_at": self.manifest.created_at,
            "available_modules": [s.key for s in self.available_modules],
            "selected_modules": [s.key for s in self.selected_modules],
            "module_details": {
                section.key: detail.to_dict()
                for section, detail in self.module_details.items()
            },
            "warnings": list(self.warnings),
        }


class Severity(str, Enum):
    """校验问题严重程度"""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    """单条校验问题"""

    code: str
    """问题代码，如 CHECKSUM_MISMATCH"""

    message: str
    """问题描述"""

    module: Optional[str] = None
    """相关模块键"""

    severity: Severity = Severity.ERROR
    """严重程度"""

    @classmethod
    def warning(cls, code: str, message: str, module: Optional[str] = None) -> "ValidationError":
        return cls(code=code, message=message, module=module, severity=Severity.WARNING)

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "code": self.code,
            "message": self.message,
            "module": self.module,
            "severity": self.severity.value,
        }


class BackupValidationResult(ABC):
    """校验结果（Valid | Invalid）"""

    @abstractmethod
    def is_valid(self) -> bool:
        """没有 ERROR 级别问题即视为有效，仅有警告不阻止恢复"""

    @property
    def errors(self) -> list[ValidationError]:
        return []

    @property
    def fatal_errors(self) -> list[ValidationError]:
        return [e for e in self.errors if e.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationError]:
        return [e for e in self.errors if e.severity == Severity.WARNING]

    @staticmethod
    def from_errors(errors: Iterable[ValidationError]) -> "BackupValidationResult":
        """根据问题列表构建结果，空列表为 Valid，否则为 Invalid"""
        errors = list(errors)
        if not errors:
            return Valid()
        return Invalid(errors)


@dataclass(frozen=True)
class Valid(BackupValidationResult):
    """校验通过"""

    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid(BackupValidationResult):
    """存在校验问题（可能只有警告）"""

    issues: tuple[ValidationError, ...] = ()

    def __init__(self, errors: Iterable[ValidationError]):
        object.__setattr__(self, "issues", tuple(errors))

    @property
    def errors(self) -> list[ValidationError]:
        return list(self.issues)

    def is_valid(self) -> bool:
        return not self.fatal_errors


class RestoreResult(ABC):
    """恢复结果（Success | PartialFailure | TotalFailure）

    每次恢复事务只返回一个结果
    """

    success: bool = False

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""


@dataclass(frozen=True)
class Success(RestoreResult):
    """所有选中模块均已恢复"""

    success = True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "status": "success"}


@dataclass(frozen=True)
class PartialFailure(RestoreResult):
    """恢复阶段中途失败，已尝试回滚"""

    succeeded: frozenset[BackupSection] = frozenset()
    """持久成功的模块（回滚后始终为空）"""

    failed: dict[BackupSection, str] = field(default_factory=dict)
    """失败的模块及原因"""

    rolled_back: bool = False
    """所有回滚是否都成功"""

    success = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "status": "partial_failure",
            "succeeded": sorted(s.key for s in self.succeeded),
            "failed": {section.key: reason for section, reason in self.failed.items()},
            "rolled_back": self.rolled_back,
        }


@dataclass(frozen=True)
class TotalFailure(RestoreResult):
    """在任何修改发生之前失败"""

    error: str = ""
    """失败原因"""

    success = False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "status": "total_failure", "error": self.error}


class BackupOperationType(str, Enum):
    """传输操作类型"""

    EXPORT = "export"
    IMPORT = "import"


@dataclass(frozen=True)
class BackupTransferProgressUpdate:
    """备份传输进度"""

    operation: BackupOperationType
    """操作类型"""

    step: int
    """当前步骤"""

    total_steps: int
    """总步骤数"""

    title: str
    """标题"""

    detail: str
    """详细说明"""

    section: Optional[BackupSection] = None
    """当前处理的模块"""

    @property
    def progress(self) -> float:
        """进度，范围 [0, 1]"""
        if self.total_steps <= 0:
            return 0.0
        return min(max(self.step / self.total_steps, 0.0), 1.0)


@dataclass(frozen=True)
class PlaybackHistoryBackupEntry:
    """播放历史备份条目"""

    song_id: str
    timestamp: int
    duration_ms: int
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "songId": self.song_id,
            "timestamp": self.timestamp,
            "durationMs": self.duration_ms,
            "startTimestamp": self.start_timestamp,
            "endTimestamp": self.end_timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaybackHistoryBackupEntry":
        """从字典创建"""
        return cls(
            song_id=str(data.get("songId", "")),
            timestamp=data.get("timestamp") or 0,
            duration_ms=data.get("durationMs") or 0,
            start_timestamp=data.get("startTimestamp"),
            end_timestamp=data.get("endTimestamp"),
        )


@dataclass(frozen=True)
class ArtistImageBackupEntry:
    """艺术家图片备份条目"""

    artist_name: str
    image_url: str

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {"artistName": self.artist_name, "imageUrl": self.image_url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArtistImageBackupEntry":
        """从字典创建"""
        return cls(
            artist_name=data.get("artistName") or "",
            image_url=data.get("imageUrl") or "",
        )


@dataclass
class BackupHistoryEntry:
    """备份历史记录"""

    uri: str
    """备份文件位置"""

    display_name: str
    """显示名称"""

    created_at: int
    """创建时间（毫秒时间戳）"""

    schema_version: int
    """备份格式版本"""

    modules: list[str] = field(default_factory=list)
    """包含的模块键"""

    size_bytes: int = 0
    """备份大小（字节）"""

    app_version: str = ""
    """导出程序版本"""

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "uri": self.uri,
            "display_name": self.display_name,
            "created_at": self.created_at,
            "schema_version": self.schema_version,
            "modules": list(self.modules),
            "size_bytes": self.size_bytes,
            "app_version": self.app_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupHistoryEntry":
        """从字典创建"""
        return cls(
            uri=data.get("uri", ""),
            display_name=data.get("display_name", ""),
            created_at=data.get("created_at", 0),
            schema_version=data.get("schema_version", 0),
            modules=list(data.get("modules", [])),
            size_bytes=data.get("size_bytes", 0),
            app_version=data.get("app_version", ""),
        )


__all__ = [
    "ModuleRestoreDetail",
    "RestorePlan",
    "Severity",
    "ValidationError",
    "BackupValidationResult",
    "Valid",
    "Invalid",
    "RestoreResult",
    "Success",
    "PartialFailure",
    "TotalFailure",
    "BackupOperationType",
    "BackupTransferProgressUpdate",
    "PlaybackHistoryBackupEntry",
    "ArtistImageBackupEntry",
    "BackupHistoryEntry",
]
