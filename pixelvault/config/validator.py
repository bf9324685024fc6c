"""配置 Schema 验证器

使用 jsonschema 校验配置文件和单个配置值
"""

from typing import Any, Optional, Dict, List

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError, ValidationError as SchemaValidationError
from loguru import logger

from .schema import build_json_schema

VAULT_SCHEMA_NAME = "pixelvault"


class ConfigValidationError(Exception):
    """配置验证错误"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class ConfigValidator:
    """配置验证器"""

    def __init__(self):
        self._schemas: Dict[str, dict] = {}

    def register_schema(self, name: str, schema: dict) -> None:
        """注册 Schema

        Args:
            name: Schema 名称
            schema: JSON Schema 字典

        Raises:
            ConfigValidationError: Schema 本身不合法
        """
        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise ConfigValidationError(f"Schema 不合法: {name}", errors=[str(e)]) from e
        self._schemas[name] = schema
        logger.debug(f"已注册 Schema: {name}")

    def get_schema(self, name: str) -> Optional[dict]:
        """获取 Schema，不存在返回None"""
        return self._schemas.get(name)

    def _require(self, name: str) -> dict:
        if name not in self._schemas:
            raise ConfigValidationError(f"Schema 不存在: {name}")
        return self._schemas[name]

    def validate(self, config: dict, schema_name: str) -> bool:
        """验证配置，收集全部错误后一起报告

        Args:
            config: 配置字典
            schema_name: Schema 名称

        Returns:
            验证通过时返回True

        Raises:
            ConfigValidationError: 验证失败
        """
        validator = Draft7Validator(self._require(schema_name))
        errors: List[str] = []
        for error in sorted(validator.iter_errors(dict(config)), key=lambda e: [str(p) for p in e.path]):
            errors.extend(self._format_validation_error(error))
        if errors:
            raise ConfigValidationError(f"配置验证失败: {schema_name}", errors=errors)
        logger.debug(f"配置验证通过: {schema_name}")
        return True

    def validate_value(self, value: Any, schema_name: str, property_path: str) -> bool:
        """验证单个配置值

        Args:
            value: 配置值
            schema_name: Schema 名称
            property_path: 属性路径（如 "validation.max_zip_ratio"）

        Returns:
            验证通过时返回True，属性不在 Schema 中时同样返回True

        Raises:
            ConfigValidationError: 验证失败
        """
        target = self._navigate_schema(self._require(schema_name), property_path)
        if target is None:
            return True
        try:
            Draft7Validator(target).validate(value)
        except SchemaValidationError as e:
            raise ConfigValidationError(
                f"配置值验证失败: {property_path}",
                errors=self._format_validation_error(e),
            ) from e
        return True

    @staticmethod
    def _navigate_schema(schema: dict, property_path: str) -> Optional[dict]:
        current = schema
        for part in property_path.split("."):
            current = current.get("properties", {}).get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def _format_validation_error(error: SchemaValidationError) -> List[str]:
        if error.path:
            path_str = ".".join(str(p) for p in error.path)
            return [f"{path_str}: {error.message}"]
        return [str(error.message)]


_global_validator: Optional[ConfigValidator] = None


def get_validator() -> ConfigValidator:
    """获取全局配置验证器（已注册 pixelvault Schema）"""
    global _global_validator
    if _global_validator is None:
        _global_validator = ConfigValidator()
        _global_validator.register_schema(VAULT_SCHEMA_NAME, build_json_schema())
    return _global_validator


__all__ = [
    "VAULT_SCHEMA_NAME",
    "ConfigValidationError",
    "ConfigValidator",
    "get_validator",
]
