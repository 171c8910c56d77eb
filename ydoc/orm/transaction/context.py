"""事务上下文

提供事务和保存点的上下文管理
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, List, Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from ydoc.log import get_logger

from .state import TransactionState
from .propagation import TransactionPropagation
from .exceptions import (
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    TransactionAlreadyRolledBackError,
    SavepointNotFoundError,
)

if TYPE_CHECKING:
    from sqlalchemy.orm.session import SessionTransaction

logger = get_logger("ydoc.orm.transaction")


class SavepointContext:
    """保存点上下文

    使用示例:
        with tx.savepoint("sp1") as sp:
            risky_operation()
            # 如果发生异常，自动回滚到此保存点
    """

    def __init__(self, name: str, nested: 'SessionTransaction'):
        self.name = name
        self._nested = nested
        self._state = TransactionState.ACTIVE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    def release(self) -> None:
        """释放保存点（合并到外层事务）"""
        if self._state != TransactionState.ACTIVE:
            return
        try:
            self._nested.commit()
            self._state = TransactionState.COMMITTED
            logger.debug(f"保存点 {self.name} 已释放")
        except Exception:
            self._state = TransactionState.FAILED
            raise

    def rollback(self) -> None:
        """回滚到此保存点"""
        if self._state != TransactionState.ACTIVE:
            return
        try:
            self._nested.rollback()
            self._state = TransactionState.ROLLED_BACK
            logger.debug(f"保存点 {self.name} 已回滚")
        except Exception as e:
            self._state = TransactionState.FAILED
            logger.error(f"保存点 {self.name} 回滚失败: {e}")
            raise


class TransactionContext:
    """事务上下文

    管理单个事务的完整生命周期，包括：
    - 事务状态跟踪
    - Savepoint 管理
    - 嵌套层级（REQUIRED 加入时递增）
    - 提交抑制（事务内 save(commit=True) 只 flush）

    退出时如有异常则回滚并原样抛出；正常退出则提交。

    使用示例:
        with TransactionContext(session) as tx:
            doc.sort_order = 1.5
            with tx.savepoint("sp1"):
                other.sort_order = 2.5
    """

    def __init__(
        self,
        session: Session,
        auto_commit: bool = True,
        propagation: TransactionPropagation = None,
        suppress_commit: bool = True
    ):
        self._session = session
        self._auto_commit = auto_commit
        self._propagation = propagation or TransactionPropagation.REQUIRED
        self._suppress_commit = suppress_commit
        self._state = TransactionState.INACTIVE

        self._savepoints: Dict[str, SavepointContext] = {}
        self._savepoint_stack: List[str] = []
        self._savepoint_counter = 0

        self._nesting_level = 0

    # ==================== 属性 ====================

    @property
    def session(self) -> Session:
        """获取数据库 session"""
        return self._session

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    @property
    def nesting_level(self) -> int:
        return self._nesting_level

    @property
    def propagation(self) -> TransactionPropagation:
        return self._propagation

    # ==================== 事务生命周期方法 ====================

    def begin(self) -> 'TransactionContext':
        """开始事务（SQLAlchemy 会话自动 begin，这里只跟踪状态）"""
        if self._state == TransactionState.ACTIVE:
            self._nesting_level += 1
            logger.debug(f"加入现有事务 (level={self._nesting_level})")
            return self

        self._state = TransactionState.ACTIVE
        self._nesting_level = 1
        logger.debug(f"事务开始 (level={self._nesting_level})")
        return self

    def commit(self) -> None:
        """提交事务"""
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError()
        if self._state == TransactionState.ROLLED_BACK:
            raise TransactionAlreadyRolledBackError()
        if self._state != TransactionState.ACTIVE:
            raise TransactionNotActiveError(f"无法提交：事务状态为 {self._state}")

        if self._nesting_level > 1:
            self._nesting_level -= 1
            logger.debug(f"嵌套事务退出 (level={self._nesting_level})")
            return

        try:
            self._session.commit()
            self._state = TransactionState.COMMITTED
            self._nesting_level = 0
            logger.debug("事务提交成功")
        except Exception:
            self._state = TransactionState.FAILED
            raise

    def rollback(self) -> None:
        """回滚事务（幂等）"""
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError("无法回滚：事务已提交")
        if not self._state.can_rollback():
            return

        try:
            self._session.rollback()
            self._state = TransactionState.ROLLED_BACK
            self._nesting_level = 0
            self._savepoints.clear()
            self._savepoint_stack.clear()
            logger.debug("事务回滚成功")
        except Exception as e:
            self._state = TransactionState.FAILED
            logger.error(f"事务回滚失败: {e}")
            raise

    def flush(self) -> None:
        """刷新 session（将变更写入数据库但不提交）"""
        if not self.is_active:
            raise TransactionNotActiveError("无法刷新：事务未激活")
        self._session.flush()

    # ==================== Savepoint 方法 ====================

    @contextmanager
    def savepoint(self, name: str = None):
        """创建保存点上下文

        Args:
            name: 保存点名称，不传则自动生成
        """
        if not self.is_active:
            raise TransactionNotActiveError("无法创建保存点：事务未激活")

        if name is None:
            self._savepoint_counter += 1
            name = f"sp_{self._savepoint_counter}"

        sp = SavepointContext(name, self._session.begin_nested())
        self._savepoints[name] = sp
        self._savepoint_stack.append(name)
        logger.debug(f"创建保存点: {name}")
        try:
            yield sp
            if sp.is_active:
                sp.release()
        except Exception:
            if sp.is_active:
                sp.rollback()
            raise
        finally:
            if self._savepoint_stack and self._savepoint_stack[-1] == name:
                self._savepoint_stack.pop()
                self._savepoints.pop(name, None)

    def get_savepoint(self, name: str) -> Optional[SavepointContext]:
        """获取指定名称的保存点"""
        return self._savepoints.get(name)

    def rollback_to_savepoint(self, name: str) -> None:
        """回滚到指定保存点"""
        sp = self._savepoints.get(name)
        if sp is None:
            raise SavepointNotFoundError(name)
        sp.rollback()
        logger.debug(f"回滚到保存点: {name}")

    # ==================== 提交抑制控制 ====================

    def should_suppress_commit(self) -> bool:
        """事务内部的 commit=True 是否应被忽略（只 flush）"""
        return self.is_active and self._suppress_commit

    # ==================== 上下文管理器 ====================

    def __enter__(self) -> 'TransactionContext':
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False

        if self._auto_commit and self._nesting_level == 1:
            try:
                self.commit()
            except Exception:
                # commit 失败时确保回滚，清理 session 状态
                self.rollback()
                raise
        elif self._nesting_level > 1:
            self._nesting_level -= 1

        return False

    def __repr__(self) -> str:
        return (
            f"TransactionContext("
            f"state={self._state.value}, "
            f"nesting_level={self._nesting_level})"
        )
