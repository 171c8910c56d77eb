"""ORM模块

提供文档存储层的 ORM 基础设施：
- Base / CoreModel: 声明基类与核心模型（主键、时间戳、软删除标记、CRUD）
- 数据库会话管理（DatabaseManager 单例、db_session_scope）
- 事务管理（传播行为、保存点、提交抑制）
- 树形结构（物化路径、祖先判断、树组装）
- 排序（浮点分数索引）

使用示例:
    from ydoc.orm import init_database, db_session_scope, transaction_manager as tm

    init_database("sqlite:///./docs.db", create_tables=True)

    with db_session_scope() as session:
        with tm.transaction(session):
            ...
"""

from .core_model import Base, CoreModel
from .db_session import (
    DatabaseManager,
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
)

# 事务管理
from .transaction import (
    TransactionState,
    TransactionPropagation,
    TransactionError,
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    TransactionAlreadyRolledBackError,
    SavepointError,
    SavepointNotFoundError,
    PropagationError,
    TransactionContext,
    SavepointContext,
    TransactionManager,
    transaction_manager,
    get_current_transaction,
)

# 树形结构
from .tree import (
    PATH_SEPARATOR,
    build_path,
    descendant_prefix,
    is_path_descendant,
    is_descendant_node,
    build_tree_list,
)

# 排序
from .sortable import (
    SortFieldMixin,
    Position,
    at_end,
    before_reference,
    after_reference,
    is_already_at_position,
)

__all__ = [
    "Base",
    "CoreModel",
    "DatabaseManager",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    # 事务
    "TransactionState",
    "TransactionPropagation",
    "TransactionError",
    "TransactionNotActiveError",
    "TransactionAlreadyCommittedError",
    "TransactionAlreadyRolledBackError",
    "SavepointError",
    "SavepointNotFoundError",
    "PropagationError",
    "TransactionContext",
    "SavepointContext",
    "TransactionManager",
    "transaction_manager",
    "get_current_transaction",
    # 树
    "PATH_SEPARATOR",
    "build_path",
    "descendant_prefix",
    "is_path_descendant",
    "is_descendant_node",
    "build_tree_list",
    # 排序
    "SortFieldMixin",
    "Position",
    "at_end",
    "before_reference",
    "after_reference",
    "is_already_at_position",
]
