"""备份校验"""

from .sanitizer import ContentSanitizer
from .file_validator import BackupFileValidator
from .manifest_validator import ManifestValidator
from .module_schema import ModuleSchemaValidator
from .pipeline import ValidationPipeline

__all__ = [
    "ContentSanitizer",
    "BackupFileValidator",
    "ManifestValidator",
    "ModuleSchemaValidator",
    "ValidationPipeline",
]
