"""
文档存储模块 - 枚举定义
"""

from enum import Enum

from ydoc.orm.sortable import Position


class DocType(str, Enum):
    """节点类型

    文件夹可以包含子节点，文档不可以。
    """

    FOLDER = "folder"
    DOCUMENT = "document"


class DeleteState(str, Enum):
    """删除状态

    由 deleted_at 与 explicitly_deleted 两个字段推导：
    - ACTIVE: 未删除
    - EXPLICITLY_DELETED: 自身被直接删除（出现在回收站）
    - CASCADE_DELETED: 因祖先被删除而连带删除（不出现在回收站）
    """

    ACTIVE = "active"
    EXPLICITLY_DELETED = "explicitly_deleted"
    CASCADE_DELETED = "cascade_deleted"


class MoveDirection(str, Enum):
    """相邻交换方向"""

    UP = "up"
    DOWN = "down"


__all__ = [
    "DocType",
    "DeleteState",
    "MoveDirection",
    "Position",
]
