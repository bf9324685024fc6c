"""配置模块"""

from .schema import CONFIG_SCHEMA, get_default_config, build_json_schema
from .validator import ConfigValidator, ConfigValidationError, get_validator
from .vault_config import VaultConfig

__all__ = [
    "CONFIG_SCHEMA",
    "get_default_config",
    "build_json_schema",
    "ConfigValidator",
    "ConfigValidationError",
    "get_validator",
    "VaultConfig",
]
