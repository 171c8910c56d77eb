"""分数索引排序计算

纯函数：给定同级节点（有 id 与 sort_order 属性的任意对象），计算把某个节点
放到末尾、某参照节点之前或之后时应使用的 sort_order，不读写数据库。

使用示例:
    from ydoc.orm.sortable import at_end, before_reference, Position

    new_order = at_end(siblings)                       # max + 1，或 1.0
    new_order = before_reference(siblings, ref_id, doc.id)
    if is_already_at_position(siblings, doc.id, ref_id, Position.AFTER):
        return doc                                     # 无需写入
"""

from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from ydoc.exceptions import ReferenceNotSiblingException


class Position(str, Enum):
    """相对参照节点的位置"""

    BEFORE = "before"
    AFTER = "after"


# 没有兄弟节点时的起始序号
FIRST_SORT_ORDER = 1.0


def sort_siblings(siblings: Sequence[Any]) -> List[Any]:
    """按 (sort_order, id) 升序排列兄弟节点，保证相同序号时顺序稳定"""
    return sorted(siblings, key=lambda s: (s.sort_order, s.id))


def at_end(siblings: Sequence[Any]) -> float:
    """放到末尾：最大 sort_order + 1，没有兄弟时为 1.0"""
    if not siblings:
        return FIRST_SORT_ORDER
    return max(s.sort_order for s in siblings) + 1


def _locate_reference(
    siblings: Sequence[Any],
    reference_id: Any,
    exclude_id: Any = None,
) -> Tuple[List[Any], int]:
    ordered = [s for s in sort_siblings(siblings) if s.id != exclude_id]
    for index, sibling in enumerate(ordered):
        if sibling.id == reference_id:
            return ordered, index
    raise ReferenceNotSiblingException(reference_id)


def before_reference(siblings: Sequence[Any], reference_id: Any, exclude_id: Any = None) -> float:
    """放到参照节点之前

    参照节点是第一个时取 ref/2（结果为正时），否则 ref - 1，避免序号塌缩到 0 或负数附近；
    其他情况取参照节点与前一个节点的中点。

    Raises:
        ReferenceNotSiblingException: 参照节点不在（排除 exclude_id 后的）兄弟中
    """
    ordered, index = _locate_reference(siblings, reference_id, exclude_id)
    reference_order = ordered[index].sort_order
    if index == 0:
        half = reference_order / 2
        return half if half > 0 else reference_order - 1
    return (ordered[index - 1].sort_order + reference_order) / 2


def after_reference(siblings: Sequence[Any], reference_id: Any, exclude_id: Any = None) -> float:
    """放到参照节点之后

    参照节点是最后一个时取 ref + 1，否则取与后一个节点的中点。

    Raises:
        ReferenceNotSiblingException: 参照节点不在（排除 exclude_id 后的）兄弟中
    """
    ordered, index = _locate_reference(siblings, reference_id, exclude_id)
    reference_order = ordered[index].sort_order
    if index == len(ordered) - 1:
        return reference_order + 1
    return (reference_order + ordered[index + 1].sort_order) / 2


def relative_to_reference(
    siblings: Sequence[Any],
    reference_id: Any,
    position: Position,
    exclude_id: Any = None,
) -> float:
    """按 position 分派到 before_reference / after_reference"""
    if Position(position) == Position.BEFORE:
        return before_reference(siblings, reference_id, exclude_id)
    return after_reference(siblings, reference_id, exclude_id)


def is_already_at_position(
    siblings: Sequence[Any],
    node_id: Any,
    reference_id: Optional[Any],
    position: Optional[Position] = None,
) -> bool:
    """节点是否已处于目标位置（用于短路无意义的重排）

    - reference_id 为 None：节点已经是最后一个
    - BEFORE：节点紧挨在参照节点之前
    - AFTER：节点紧挨在参照节点之后

    siblings 需要包含节点本身；节点或参照节点不在其中时返回 False。
    """
    ordered = sort_siblings(siblings)
    ids = [s.id for s in ordered]
    if node_id not in ids:
        return False
    node_index = ids.index(node_id)

    if reference_id is None:
        return node_index == len(ids) - 1
    if reference_id not in ids:
        return False

    reference_index = ids.index(reference_id)
    if Position(position or Position.AFTER) == Position.BEFORE:
        return node_index + 1 == reference_index
    return node_index == reference_index + 1


def has_duplicate_orders(siblings: Sequence[Any]) -> bool:
    """兄弟中是否存在重复的 sort_order"""
    orders = [s.sort_order for s in siblings]
    return len(orders) != len(set(orders))


def renumber(siblings: Sequence[Any], start: float = FIRST_SORT_ORDER) -> List[Tuple[Any, float]]:
    """按当前顺序重新编号为 start, start+1, ...

    Returns:
        [(节点, 新 sort_order)]，仅计算不写入
    """
    return [(s, start + i) for i, s in enumerate(sort_siblings(siblings))]
