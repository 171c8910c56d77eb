"""工具模块"""

from .file_size import parse_file_size
from .slug import (
    DEFAULT_SLUG,
    generate_slug,
    timestamped_slug,
    normalize_title,
    now_millis,
)

__all__ = [
    "parse_file_size",
    "DEFAULT_SLUG",
    "generate_slug",
    "timestamped_slug",
    "normalize_title",
    "now_millis",
]
