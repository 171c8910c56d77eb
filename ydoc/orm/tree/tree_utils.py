"""树形结构工具函数

使用示例:
    from ydoc.orm.tree import build_tree_list

    flat_list = [
        {"id": 1, "parent_id": None, "sort_order": 1.0},
        {"id": 2, "parent_id": 1, "sort_order": 1.0},
    ]
    tree = build_tree_list(flat_list, sort_key=lambda n: n["sort_order"])
"""

from typing import List, Dict, Any, Optional, Callable


def build_tree_list(
    nodes: List[Dict[str, Any]],
    id_field: str = "id",
    parent_field: str = "parent_id",
    children_field: str = "children",
    sort_key: Optional[Callable[[Dict], Any]] = None,
) -> List[Dict[str, Any]]:
    """将扁平列表构建为嵌套树结构

    父节点不在列表中的节点视为根节点（例如父节点已被删除）。

    Args:
        nodes: 扁平的节点列表，每个节点是一个字典
        id_field: ID 字段名
        parent_field: 父节点 ID 字段名
        children_field: 子节点列表字段名（输出中使用）
        sort_key: 同级节点排序函数

    Returns:
        嵌套的树形结构列表
    """
    if not nodes:
        return []

    node_map: Dict[Any, Dict[str, Any]] = {}
    for node in nodes:
        # 复制节点，避免修改原始数据
        node_copy = dict(node)
        node_copy[children_field] = []
        node_map[node_copy[id_field]] = node_copy

    roots: List[Dict[str, Any]] = []
    for node in node_map.values():
        parent_id = node.get(parent_field)
        if parent_id is not None and parent_id in node_map:
            node_map[parent_id][children_field].append(node)
        else:
            roots.append(node)

    if sort_key:
        # 显式栈遍历，避免深树递归
        stack = [roots]
        while stack:
            level = stack.pop()
            level.sort(key=sort_key)
            stack.extend(n[children_field] for n in level if n[children_field])

    return roots
