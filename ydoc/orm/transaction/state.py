"""事务状态枚举"""

from enum import Enum


class TransactionState(str, Enum):
    """事务状态

    TransactionContext 进入时从 INACTIVE 变为 ACTIVE，退出时进入 COMMITTED 或 ROLLED_BACK；
    提交或回滚本身出错时记为 FAILED，此时仍允许再次回滚以清理 session。
    """

    INACTIVE = "inactive"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"

    def can_rollback(self) -> bool:
        return self in (TransactionState.ACTIVE, TransactionState.FAILED)
