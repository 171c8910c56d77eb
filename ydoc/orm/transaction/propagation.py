"""事务传播行为

定义当方法在已有事务上下文中被调用时的行为
"""

from enum import Enum


class TransactionPropagation(str, Enum):
    """事务传播行为

    使用示例:
        with tm.transaction(session, propagation=TransactionPropagation.NESTED):
            # 在外层事务中开启保存点
            pass
    """

    REQUIRED = "required"
    """如果当前有事务则加入，没有则新建（默认）"""

    REQUIRES_NEW = "requires_new"
    """有外层事务时开启保存点，没有则新建事务"""

    MANDATORY = "mandatory"
    """必须在事务中执行，否则抛出异常"""

    NESTED = "nested"
    """必须存在外层事务，在其中创建保存点；外层回滚会一起回滚"""
