"""物化路径构建

节点的物化路径由父节点的当前路径和自身 slug 拼接而成：
根级节点为 "/slug"，子节点为 "父路径/slug"。

所有写入 path 的地方都必须经过 build_path，保证路径与 parent_id 一致。
"""

from typing import Optional


PATH_SEPARATOR = "/"


def build_path(parent_path: Optional[str], slug: str) -> str:
    """计算节点的物化路径

    Args:
        parent_path: 父节点的当前路径，None 或空串表示根级
        slug: 节点自身的 slug

    使用示例:
        >>> build_path(None, "guides")
        '/guides'
        >>> build_path("/guides", "setup")
        '/guides/setup'
    """
    if not parent_path:
        return f"{PATH_SEPARATOR}{slug}"
    return f"{parent_path}{PATH_SEPARATOR}{slug}"


def descendant_prefix(path: str) -> str:
    """后代节点路径的公共前缀（"路径/"），用于 LIKE 查询与前缀比较"""
    return f"{path}{PATH_SEPARATOR}"
