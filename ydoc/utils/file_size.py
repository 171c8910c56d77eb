"""文件大小解析工具

使用示例:
    from ydoc.utils import parse_file_size

    size = parse_file_size("10MB")   # 10485760
    size = parse_file_size("1.5GB")  # 1610612736
"""

import re
from typing import Union


# 单位转换表（按长度降序排列）
SIZE_UNITS = {
    'TB': 1024 ** 4,
    'GB': 1024 ** 3,
    'MB': 1024 ** 2,
    'KB': 1024,
    'B': 1,
}

# 单位别名
SIZE_UNIT_ALIASES = {
    'T': 'TB',
    'G': 'GB',
    'M': 'MB',
    'K': 'KB',
    'BYTES': 'B',
    'BYTE': 'B',
}

_SIZE_PATTERN = re.compile(r"^([0-9]*\.?[0-9]+)\s*([A-Z]*)$")


def parse_file_size(size_str: Union[str, int, float]) -> int:
    """解析文件大小字符串

    支持的单位：B, KB, MB, GB, TB 及其单字母简写（不区分大小写），
    无单位时按字节处理。

    Raises:
        ValueError: 当格式无效时抛出异常
    """
    if isinstance(size_str, (int, float)):
        return int(size_str)

    text = str(size_str).strip().upper()
    if not text:
        raise ValueError("文件大小字符串不能为空")

    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"无法解析文件大小: {size_str}")

    number, unit = match.groups()
    unit = SIZE_UNIT_ALIASES.get(unit, unit) or 'B'
    if unit not in SIZE_UNITS:
        raise ValueError(f"未知的文件大小单位: {unit}")
    return int(float(number) * SIZE_UNITS[unit])
