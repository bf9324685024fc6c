"""模块负载结构校验器

负载整体结构问题（JSON 无效、不是数组、条目过多）为 ERROR，
单条记录的字段问题为 WARNING。字段规则以 JSON Schema 表达，
每条规则对应一个问题代码，由 jsonschema 逐条检查记录。
"""

import json
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft7Validator

from ..constants import BackupSection
from ..models import BackupValidationResult, ValidationError
from ..stores import PREFERENCE_TYPES

MAX_STRING_LENGTH = 50_000
MAX_ENTRIES_PER_MODULE = 100_000
MAX_QUERY_LENGTH = 500
MAX_URL_LENGTH = 2000
MAX_TRANSITION_DURATION_MS = 30_000

PREFERENCE_SECTIONS = frozenset({
    BackupSection.PLAYLISTS,
    BackupSection.GLOBAL_SETTINGS,
    BackupSection.QUICK_FILL,
    BackupSection.EQUALIZER,
})


@dataclass(frozen=True)
class RecordRule:
    """单条记录的字段规则"""

    code: str
    message: str
    schema: dict

    def validator(self) -> Draft7Validator:
        return Draft7Validator(self.schema)


def _record_rules(max_string_length: int) -> dict[BackupSection, list[RecordRule]]:
    preference_rules = [
        RecordRule(
            "MISSING_PREF_KEY",
            "缺少偏好键",
            {"required": ["key"], "properties": {"key": {"type": "string", "pattern": r"\S"}}},
        ),
        RecordRule(
            "INVALID_PREF_TYPE",
            "偏好类型不合法",
            {"required": ["type"], "properties": {"type": {"enum": list(PREFERENCE_TYPES)}}},
        ),
    ]
    return {
        BackupSection.FAVORITES: [
            RecordRule(
                "INVALID_SONG_ID",
                "songId 无效",
                {"required": ["songId"], "properties": {"songId": {"type": "integer", "exclusiveMinimum": 0}}},
            ),
        ],
        BackupSection.LYRICS: [
            RecordRule(
                "LYRICS_TOO_LONG",
                "歌词内容超过最大长度",
                {"properties": {"content": {"maxLength": max_string_length}}},
            ),
        ],
        BackupSection.SEARCH_HISTORY: [
            RecordRule(
                "QUERY_TOO_LONG",
                f"搜索词超过 {MAX_QUERY_LENGTH} 个字符",
                {"properties": {"query": {"maxLength": MAX_QUERY_LENGTH}}},
            ),
        ],
        BackupSection.ENGAGEMENT_STATS: [
            RecordRule(
                "NEGATIVE_PLAY_COUNT",
                "播放次数为负数",
                {"properties": {"play_count": {"minimum": 0}, "playCount": {"minimum": 0}}},
            ),
        ],
        BackupSection.PLAYBACK_HISTORY: [
            RecordRule(
                "NEGATIVE_DURATION",
                "播放时长为负数",
                {"properties": {"durationMs": {"minimum": 0}}},
            ),
        ],
        BackupSection.ARTIST_IMAGES: [
            RecordRule(
                "INSECURE_URL",
                "图片链接不是 HTTPS",
                {"properties": {"imageUrl": {"anyOf": [{"const": ""}, {"pattern": "^https://"}]}}},
            ),
            RecordRule(
                "URL_TOO_LONG",
                f"图片链接超过 {MAX_URL_LENGTH} 个字符",
                {"properties": {"imageUrl": {"maxLength": MAX_URL_LENGTH}}},
            ),
        ],
        BackupSection.TRANSITIONS: [
            RecordRule(
                "INVALID_TRANSITION_DURATION",
                "过渡时长超出范围",
                {
                    "properties": {
                        "settings": {
                            "properties": {
                                "durationMs": {"minimum": 0, "maximum": MAX_TRANSITION_DURATION_MS}
                            }
                        }
                    }
                },
            ),
        ],
        **{section: preference_rules for section in PREFERENCE_SECTIONS},
    }


class ModuleSchemaValidator:
    """模块负载结构校验器"""

    def __init__(
        self,
        max_entries: int = MAX_ENTRIES_PER_MODULE,
        max_string_length: int = MAX_STRING_LENGTH,
    ):
        self.max_entries = max_entries
        self._rules = {
            section: [(rule, rule.validator()) for rule in rules]
            for section, rules in _record_rules(max_string_length).items()
        }

    def validate(self, section: BackupSection, payload: str) -> BackupValidationResult:
        """校验模块负载

        Args:
            section: 模块分区
            payload: 模块负载

        Returns:
            校验结果
        """
        try:
            data = json.loads(payload)
        except (ValueError, TypeError):
            return BackupValidationResult.from_errors([
                ValidationError("INVALID_JSON", f"模块 {section.key} 的负载不是合法 JSON", module=section.key)
            ])

        # 所有模块处理器都只接受 JSON 数组
        if not isinstance(data, list):
            return BackupValidationResult.from_errors([
                ValidationError("NOT_ARRAY", f"模块 {section.key} 的负载应为 JSON 数组", module=section.key)
            ])
        if len(data) > self.max_entries:
            return BackupValidationResult.from_errors([
                ValidationError(
                    "TOO_MANY_ENTRIES",
                    f"模块 {section.key} 有 {len(data)} 条记录（上限 {self.max_entries}）",
                    module=section.key,
                )
            ])

        return BackupValidationResult.from_errors(self._check_records(section, data))

    def _check_records(self, section: BackupSection, records: list[Any]) -> list[ValidationError]:
        errors: list[ValidationError] = []
        rules = self._rules.get(section, [])
        for index, record in enumerate(records):
            # 非对象条目不做字段检查
            if not isinstance(record, dict):
                continue
            for rule, validator in rules:
                if not validator.is_valid(record):
                    errors.append(ValidationError.warning(
                        rule.code,
                        f"{section.label}[{index}]: {rule.message}",
                        module=section.key,
                    ))
        return errors


__all__ = [
    "ModuleSchemaValidator",
    "MAX_STRING_LENGTH",
    "MAX_ENTRIES_PER_MODULE",
]
