"""事务管理器

提供事务管理的统一入口
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Callable, Optional, TypeVar, Generator

from sqlalchemy.orm import Session, scoped_session

from ydoc.log import get_logger

from .propagation import TransactionPropagation
from .context import TransactionContext
from .exceptions import PropagationError

logger = get_logger("ydoc.orm.transaction")

T = TypeVar('T')

# 当前事务上下文（线程/协程安全）
_current_transaction: ContextVar[Optional[TransactionContext]] = ContextVar(
    '_current_transaction', default=None
)


def get_current_transaction() -> Optional[TransactionContext]:
    """获取当前事务上下文，不在事务中则返回 None"""
    return _current_transaction.get()


def _resolve_session(session) -> Session:
    # scoped_session 是代理，取出当前作用域的真实 Session 以便比较身份
    if isinstance(session, scoped_session):
        return session()
    return session


class TransactionManager:
    """事务管理器（单例）

    使用示例:
        from ydoc.orm import transaction_manager as tm

        # 上下文管理器
        with tm.transaction(session) as tx:
            doc.path = "/a/b"

        # 装饰器
        @tm.transactional()
        def move_many(ids):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._default_suppress_commit = True
        self._initialized = True

    def get_session(self) -> Session:
        """获取数据库 session"""
        from ..db_session import db_manager
        return db_manager.get_session()

    @property
    def current_transaction(self) -> Optional[TransactionContext]:
        return _current_transaction.get()

    @contextmanager
    def transaction(
        self,
        session: Session = None,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        auto_commit: bool = True,
        suppress_commit: bool = None
    ) -> Generator[TransactionContext, None, None]:
        """创建事务上下文

        Args:
            session: 数据库会话，不传则自动获取
            propagation: 事务传播行为
            auto_commit: 是否自动提交
            suppress_commit: 是否抑制内部提交，None 则使用默认配置

        上下文内抛出的任何异常都会先回滚，再原样抛给调用方。

        ⚠️ 加入外层事务（REQUIRED/MANDATORY）时，内层异常会回滚整个外层事务，
        不要在内层捕获异常后继续使用同一个 session。
        """
        session = _resolve_session(session if session is not None else self.get_session())

        if suppress_commit is None:
            suppress_commit = self._default_suppress_commit

        current = self.current_transaction
        # 只有同一个 session 上的活跃事务才可加入
        joinable = current is not None and current.is_active and current.session is session

        if propagation == TransactionPropagation.MANDATORY and not joinable:
            raise PropagationError("MANDATORY", "必须在事务中执行")

        if propagation == TransactionPropagation.NESTED and not joinable:
            raise PropagationError("NESTED", "NESTED 需要一个活跃的外层事务")

        if joinable:
            if propagation in (TransactionPropagation.REQUIRED, TransactionPropagation.MANDATORY):
                current._nesting_level += 1
                logger.debug(f"{propagation.value.upper()}: 加入现有事务 (level={current._nesting_level})")
                try:
                    yield current
                except Exception:
                    current.rollback()
                    raise
                finally:
                    if current._nesting_level > 1:
                        current._nesting_level -= 1
                return

            # REQUIRES_NEW / NESTED：在现有事务中创建保存点
            logger.debug(f"{propagation.value.upper()}: 在现有事务中创建 savepoint")
            with current.savepoint():
                yield current
            return

        ctx = TransactionContext(
            session=session,
            auto_commit=auto_commit,
            propagation=propagation,
            suppress_commit=suppress_commit
        )

        token = _current_transaction.set(ctx)
        try:
            with ctx:
                yield ctx
        finally:
            _current_transaction.reset(token)

    def transactional(
        self,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        suppress_commit: bool = None
    ):
        """事务装饰器

        使用示例:
            @tm.transactional()
            def create_docs(items):
                for item in items:
                    Doc(**item).save()
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args, **kwargs) -> T:
                with self.transaction(propagation=propagation, suppress_commit=suppress_commit):
                    return func(*args, **kwargs)
            return wrapper

        return decorator

    def is_in_transaction(self) -> bool:
        """检查当前是否在事务中"""
        tx = self.current_transaction
        return tx is not None and tx.is_active

    def should_suppress_commit(self) -> bool:
        """检查是否应该抑制提交

        用于 CoreModel.save(commit=True) 判断提交是否应该被忽略
        """
        tx = self.current_transaction
        if tx is None:
            return False
        return tx.should_suppress_commit()


# 全局单例
transaction_manager = TransactionManager()
