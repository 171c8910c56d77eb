"""事务管理模块

提供事务管理功能：
- 嵌套事务（Savepoint）支持
- 事务传播行为（REQUIRED, REQUIRES_NEW, MANDATORY, NESTED）
- 提交抑制机制（事务上下文中 save(commit=True) 只 flush）

使用示例:
    from ydoc.orm import transaction_manager as tm

    with tm.transaction(session) as tx:
        doc.sort_order = 2.5

        with tx.savepoint("sp1"):
            risky_operation()
"""

from .state import TransactionState
from .propagation import TransactionPropagation
from .exceptions import (
    TransactionError,
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    TransactionAlreadyRolledBackError,
    SavepointError,
    SavepointNotFoundError,
    PropagationError,
)
from .context import TransactionContext, SavepointContext
from .manager import TransactionManager, transaction_manager, get_current_transaction

__all__ = [
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
]
