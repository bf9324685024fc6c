"""PixelVault 配置类

继承 dict，支持点号路径读取；配置文件不存在时写入默认配置
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .schema import get_default_config
from .validator import VAULT_SCHEMA_NAME, get_validator

CONFIG_PATH_ENV = "PIXELVAULT_CONFIG"
DATA_DIR_ENV = "PIXELVAULT_DATA_DIR"
DEFAULT_CONFIG_PATH = Path("data") / "config.json"


class VaultConfig(dict):
    """PixelVault 配置"""

    def __init__(self, config_path: Optional[Path] = None):
        super().__init__()
        if config_path is None:
            config_path = Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
        self.config_path = Path(config_path)
        self._initialize_config()

    def _initialize_config(self) -> None:
        if self.config_path.exists():
            self.load()
            self._check_config_integrity()
        else:
            self.update(get_default_config())
            self.save()
            logger.info(f"已创建配置文件: {self.config_path}")
        get_validator().validate(self, VAULT_SCHEMA_NAME)

    def load(self) -> None:
        """从文件加载配置"""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"配置文件格式错误: {e}")
            raise
        if not isinstance(data, dict):
            raise ValueError(f"配置文件根节点必须是对象: {self.config_path}")
        self.clear()
        self.update(data)
        logger.debug(f"已加载配置: {self.config_path}")

    def save(self) -> None:
        """保存配置到文件"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(dict(self), f, indent=2, ensure_ascii=False)
        logger.debug(f"已保存配置: {self.config_path}")

    def _check_config_integrity(self) -> None:
        """补全缺失的配置项，有变更时写回文件"""
        has_changes = False
        for key, value in get_default_config().items():
            if key not in self:
                self[key] = copy.deepcopy(value)
                logger.debug(f"插入缺失配置: {key}")
                has_changes = True
            elif isinstance(value, dict) and isinstance(self[key], dict):
                for sub_key, sub_value in value.items():
                    if sub_key not in self[key]:
                        self[key][sub_key] = copy.deepcopy(sub_value)
                        logger.debug(f"插入缺失配置: {key}.{sub_key}")
                        has_changes = True
        if has_changes:
            self.save()
            logger.info("配置完整性检查完成，已自动修复")

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置值（支持 "validation.max_zip_ratio" 形式的路径）"""
        if "." not in key:
            return super().get(key, default)
        current: Any = self
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    @property
    def data_dir(self) -> Path:
        """数据目录，环境变量 PIXELVAULT_DATA_DIR 优先"""
        return Path(os.environ.get(DATA_DIR_ENV) or self.get("data_dir", "data"))


__all__ = ["VaultConfig", "CONFIG_PATH_ENV", "DATA_DIR_ENV"]
