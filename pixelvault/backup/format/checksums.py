"""校验和工具

模块负载的 sha256 校验和与清单信息计算
"""

import hashlib
import json

from ..constants import BackupModuleInfo

CHECKSUM_PREFIX = "sha256:"


def sha256_hex(data: bytes) -> str:
    """计算字节串的SHA256十六进制摘要"""
    return hashlib.sha256(data).hexdigest()


def payload_checksum(payload: str) -> str:
    """计算负载的带前缀校验和

    Args:
        payload: 模块负载（JSON字符串）

    Returns:
        形如 sha256:<hex> 的校验和
    """
    return CHECKSUM_PREFIX + sha256_hex(payload.encode("utf-8"))


def count_payload_entries(payload: str) -> int:
    """统计负载中的记录条数

    JSON数组返回其长度，其它合法JSON视为一条，无法解析返回0
    """
    try:
        data = json.loads(payload)
    except (ValueError, TypeError):
        return 0
    if isinstance(data, list):
        return len(data)
    return 1


def build_module_info(payload: str) -> BackupModuleInfo:
    """根据负载计算模块清单信息"""
    return BackupModuleInfo(
        checksum=payload_checksum(payload),
        entry_count=count_payload_entries(payload),
        size_bytes=len(payload.encode("utf-8")),
    )


def canonical_json(data) -> str:
    """以紧凑格式序列化，保留非ASCII字符"""
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


__all__ = [
    "CHECKSUM_PREFIX",
    "sha256_hex",
    "payload_checksum",
    "count_payload_entries",
    "build_module_info",
    "canonical_json",
]
