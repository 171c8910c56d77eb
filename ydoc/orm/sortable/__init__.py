"""排序模块

- SortFieldMixin: 浮点 sort_order 字段
- ordering: 分数索引计算（at_end / before_reference / after_reference / is_already_at_position）
"""

from .sortable_fields import SortFieldMixin
from .ordering import (
    Position,
    FIRST_SORT_ORDER,
    sort_siblings,
    at_end,
    before_reference,
    after_reference,
    relative_to_reference,
    is_already_at_position,
    has_duplicate_orders,
    renumber,
)

__all__ = [
    "SortFieldMixin",
    "Position",
    "FIRST_SORT_ORDER",
    "sort_siblings",
    "at_end",
    "before_reference",
    "after_reference",
    "relative_to_reference",
    "is_already_at_position",
    "has_duplicate_orders",
    "renumber",
]
