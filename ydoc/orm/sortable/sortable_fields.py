"""排序字段定义

使用示例:
    from ydoc.orm import CoreModel
    from ydoc.orm.sortable import SortFieldMixin

    class Doc(CoreModel, SortFieldMixin):
        __tablename__ = "docs"
        # sort_order 字段由 SortFieldMixin 自动提供
"""

from sqlalchemy import Float
from sqlalchemy.orm import Mapped, mapped_column


class SortFieldMixin:
    """排序字段 Mixin

    字段说明:
        - sort_order: 分数索引（浮点数），值越小越靠前。
          在两个兄弟之间插入时取中点，无需重排其他兄弟。
    """

    sort_order: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
        index=True,
        comment="排序序号（分数索引）"
    )


__all__ = [
    "SortFieldMixin",
]
