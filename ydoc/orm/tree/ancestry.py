"""祖先关系判断

基于物化路径做 O(1) 的前缀比较，不需要逐级回溯 parent_id。
前提是 path 始终按 build_path 维护（见 path_builder）。
"""

from typing import Any, Optional

from .path_builder import descendant_prefix


def is_path_descendant(target_path: Optional[str], ancestor_path: Optional[str]) -> bool:
    """target_path 是否位于 ancestor_path 之下（不含自身）

    注意用 "祖先路径/" 作前缀，避免 "/ab" 被误判为 "/a" 的后代。
    """
    if not target_path or not ancestor_path:
        return False
    return target_path.startswith(descendant_prefix(ancestor_path))


def is_descendant_node(target: Any, ancestor: Any) -> bool:
    """节点 target 是否是 ancestor 本身或其后代

    target / ancestor 需要有 id 与 path 属性。
    """
    if target.id == ancestor.id:
        return True
    return is_path_descendant(target.path, ancestor.path)
