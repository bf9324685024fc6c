"""PixelVault 配置 Schema 定义

以分组元数据描述配置项，默认配置和 JSON Schema 均由此生成
"""

import copy

CONFIG_SCHEMA = {
    "storage_group": {
        "name": "存储设置",
        "metadata": {
            "data_dir": {
                "type": "string",
                "default": "data",
                "hint": "数据目录（相对路径基于当前工作目录）",
            },
        },
    },
    "validation_group": {
        "name": "校验设置",
        "metadata": {
            "validation": {
                "type": "object",
                "description": "备份文件与模块负载的校验限制",
                "items": {
                    "max_backup_size_mb": {
                        "type": "int",
                        "default": 50,
                        "validation": {"min": 1},
                        "hint": "备份文件大小上限（MB）",
                    },
                    "max_zip_ratio": {
                        "type": "int",
                        "default": 100,
                        "validation": {"min": 1},
                        "hint": "解压后与压缩前大小的最大比例",
                    },
                    "max_entries_per_module": {
                        "type": "int",
                        "default": 100000,
                        "validation": {"min": 1},
                        "hint": "单个模块的最大记录数",
                    },
                    "max_string_length": {
                        "type": "int",
                        "default": 50000,
                        "validation": {"min": 1},
                        "hint": "歌词等长文本的最大长度",
                    },
                },
            }
        },
    },
    "history_group": {
        "name": "备份历史",
        "metadata": {
            "history": {
                "type": "object",
                "description": "备份历史记录",
                "items": {
                    "max_entries": {
                        "type": "int",
                        "default": 10,
                        "validation": {"min": 1, "max": 100},
                        "hint": "保留的历史记录条数",
                    },
                },
            }
        },
    },
    "log_group": {
        "name": "日志设置",
        "metadata": {
            "log": {
                "type": "object",
                "description": "日志输出",
                "items": {
                    "level": {
                        "type": "string",
                        "default": "INFO",
                        "options": ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR"],
                    },
                    "file": {
                        "type": "string",
                        "default": None,
                        "nullable": True,
                        "hint": "日志文件路径，留空则只输出到控制台",
                    },
                },
            }
        },
    },
}

_JSON_TYPES = {
    "string": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "list": "array",
    "object": "object",
}


def get_default_config() -> dict:
    """从 Schema 生成默认配置"""
    config = {}
    for group_data in CONFIG_SCHEMA.values():
        for section_name, section_data in group_data["metadata"].items():
            if section_data["type"] == "object":
                config[section_name] = {
                    field_name: copy.deepcopy(field_data["default"])
                    for field_name, field_data in section_data["items"].items()
                }
            else:
                config[section_name] = copy.deepcopy(section_data["default"])
    return config


def _field_to_json_schema(field_data: dict) -> dict:
    json_type = _JSON_TYPES[field_data["type"]]
    schema: dict = {"type": [json_type, "null"] if field_data.get("nullable") else json_type}

    validation = field_data.get("validation", {})
    if "min" in validation:
        schema["minimum"] = validation["min"]
    if "max" in validation:
        schema["maximum"] = validation["max"]
    if "options" in field_data:
        schema["enum"] = list(field_data["options"])
    return schema


def build_json_schema() -> dict:
    """将分组元数据转换为 JSON Schema，供 jsonschema 校验使用"""
    properties = {}
    for group_data in CONFIG_SCHEMA.values():
        for section_name, section_data in group_data["metadata"].items():
            if section_data["type"] == "object":
                properties[section_name] = {
                    "type": "object",
                    "properties": {
                        name: _field_to_json_schema(data)
                        for name, data in section_data["items"].items()
                    },
                }
            else:
                properties[section_name] = _field_to_json_schema(section_data)
    return {"type": "object", "properties": properties}


__all__ = ["CONFIG_SCHEMA", "get_default_config", "build_json_schema"]
