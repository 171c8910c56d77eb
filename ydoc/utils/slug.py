"""Slug 生成工具

使用示例:
    from ydoc.utils import generate_slug, timestamped_slug

    generate_slug("Getting Started!")         # "getting-started"
    timestamped_slug("Getting Started", 1700000000000)
    # "getting-started-1700000000000"
"""

import re
import time
from typing import Optional


DEFAULT_SLUG = "untitled"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_MULTI_DASH = re.compile(r"-{2,}")
_WHITESPACE = re.compile(r"\s+")


def generate_slug(text: Optional[str], default: str = DEFAULT_SLUG) -> str:
    """把任意标题转换为 URL 安全的 slug

    小写化，非 [a-z0-9] 字符序列替换为 "-"，合并连续的 "-" 并去掉首尾 "-"。
    结果为空时返回 default。
    """
    if not text:
        return default
    slug = _NON_ALNUM.sub("-", text.lower())
    slug = _MULTI_DASH.sub("-", slug).strip("-")
    return slug or default


def now_millis() -> int:
    """当前时间戳（毫秒）"""
    return int(time.time() * 1000)


def timestamped_slug(text: Optional[str], timestamp: Optional[int] = None, default: str = DEFAULT_SLUG) -> str:
    """生成带毫秒时间戳后缀的 slug，用于自动生成的节点标识"""
    if timestamp is None:
        timestamp = now_millis()
    return f"{generate_slug(text, default)}-{timestamp}"


def normalize_title(title: str) -> str:
    """标题归一化：小写并把空白序列替换为 "-"（文章 JRN 使用）"""
    return _WHITESPACE.sub("-", title.lower())
