"""内容清理工具"""

import re

DEFAULT_MAX_LENGTH = 10_000
MAX_URL_LENGTH = 2000
MAX_MODULE_KEY_LENGTH = 50

# 保留制表符、换行和回车
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_MODULE_KEY = re.compile(r"^[a-z_]+$")


class ContentSanitizer:
    """备份内容清理"""

    def sanitize_string(self, text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
        """去除首尾空白和控制字符，并截断到最大长度"""
        result = text.strip()
        if len(result) > max_length:
            result = result[:max_length]
        return _CONTROL_CHARS.sub("", result)

    def sanitize_url(self, url: str, max_length: int = MAX_URL_LENGTH) -> str:
        """只保留 http/https 链接，其它协议返回空字符串"""
        sanitized = self.sanitize_string(url, max_length)
        if sanitized and not sanitized.startswith(("https://", "http://")):
            return ""
        return sanitized

    def is_valid_module_key(self, key: str) -> bool:
        """模块键只允许小写字母和下划线"""
        return bool(_MODULE_KEY.match(key)) and len(key) <= MAX_MODULE_KEY_LENGTH


__all__ = ["ContentSanitizer", "DEFAULT_MAX_LENGTH", "MAX_URL_LENGTH"]
