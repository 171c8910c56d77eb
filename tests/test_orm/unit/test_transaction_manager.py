"""事务管理器测试

测试 TransactionManager 的核心功能：
1. 基础事务测试（提交、回滚、状态转换）
2. 嵌套事务测试（Savepoint）
3. 传播行为测试（REQUIRED, REQUIRES_NEW, MANDATORY, NESTED）
4. 提交抑制测试
5. 装饰器测试
"""

import pytest
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker, scoped_session

from ydoc.orm import Base, CoreModel
from ydoc.orm.transaction import (
    TransactionState,
    TransactionPropagation,
    TransactionContext,
    get_current_transaction,
    transaction_manager,
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    SavepointNotFoundError,
    PropagationError,
)


# ==================== 测试模型定义 ====================

class TxNote(CoreModel):
    """事务管理器测试模型"""
    __tablename__ = "test_tx_notes"
    __table_args__ = {"extend_existing": True}

    title: Mapped[str] = mapped_column(String(100))


class TransactionTestBase:
    """公共夹具：内存数据库 + 使用测试 session 的事务管理器"""

    @pytest.fixture(autouse=True)
    def setup_db(self, memory_engine, monkeypatch):
        """自动初始化数据库会话"""
        Base.metadata.create_all(bind=memory_engine)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
        self.session_scope = scoped_session(SessionLocal)
        CoreModel.query = self.session_scope.query_property()

        self.tm = transaction_manager
        monkeypatch.setattr(self.tm, "get_session", lambda: self.session_scope())

        yield
        self.session_scope.remove()

    def count_notes(self, title=None):
        query = TxNote.query
        if title is not None:
            query = query.filter_by(title=title)
        return query.count()


# ==================== 基础事务测试 ====================

class TestBasicTransaction(TransactionTestBase):
    """基础事务测试"""

    def test_transaction_normal_commit(self):
        """测试正常提交"""
        with self.tm.transaction() as tx:
            note = TxNote(title="CommitTest")
            tx.session.add(note)
            tx.flush()
            note_id = note.id

        found = TxNote.get(note_id)
        assert found is not None
        assert found.title == "CommitTest"

    def test_transaction_rollback_on_exception(self):
        """测试异常时自动回滚，原异常原样抛出"""
        with pytest.raises(ValueError, match="测试异常"):
            with self.tm.transaction() as tx:
                tx.session.add(TxNote(title="RollbackTest"))
                tx.flush()
                raise ValueError("测试异常")

        assert self.count_notes("RollbackTest") == 0

    def test_transaction_manual_rollback(self):
        """测试手动回滚"""
        with self.tm.transaction(auto_commit=False) as tx:
            tx.session.add(TxNote(title="ManualRollback"))
            tx.flush()
            tx.rollback()

        assert self.count_notes("ManualRollback") == 0

    def test_rollback_is_idempotent(self):
        with self.tm.transaction(auto_commit=False) as tx:
            tx.rollback()
            tx.rollback()
            assert tx.state == TransactionState.ROLLED_BACK

    def test_transaction_state_transitions(self):
        """测试事务状态转换"""
        with self.tm.transaction() as tx:
            assert tx.state == TransactionState.ACTIVE
            assert tx.is_active is True

        assert tx.state == TransactionState.COMMITTED

    def test_transaction_state_on_rollback(self):
        """测试回滚后的状态"""
        with pytest.raises(ValueError):
            with self.tm.transaction() as tx:
                raise ValueError("测试")

        assert tx.state == TransactionState.ROLLED_BACK

    def test_commit_after_commit_raises(self):
        with self.tm.transaction() as tx:
            pass
        with pytest.raises(TransactionAlreadyCommittedError):
            tx.commit()

    def test_flush_requires_active(self):
        ctx = TransactionContext(self.session_scope())
        with pytest.raises(TransactionNotActiveError):
            ctx.flush()

    def test_get_current_transaction(self):
        """测试获取当前事务"""
        assert get_current_transaction() is None

        with self.tm.transaction() as tx:
            assert get_current_transaction() is tx

        assert get_current_transaction() is None

    def test_is_in_transaction(self):
        """测试是否在事务中"""
        assert self.tm.is_in_transaction() is False

        with self.tm.transaction():
            assert self.tm.is_in_transaction() is True

        assert self.tm.is_in_transaction() is False

    def test_scoped_session_resolves_to_same_transaction(self):
        """测试传入 scoped_session 与其当前 Session 视为同一个会话"""
        with self.tm.transaction(self.session_scope) as outer:
            with self.tm.transaction(self.session_scope()) as inner:
                assert inner is outer


# ==================== 嵌套事务（Savepoint）测试 ====================

class TestNestedTransaction(TransactionTestBase):
    """嵌套事务（Savepoint）测试"""

    def test_savepoint_commit(self):
        """测试保存点正常提交"""
        with self.tm.transaction() as tx:
            tx.session.add(TxNote(title="Outer"))
            tx.flush()

            with tx.savepoint("sp1"):
                tx.session.add(TxNote(title="Inner"))
                tx.flush()

        assert self.count_notes() == 2

    def test_savepoint_rollback_not_affect_outer(self):
        """测试保存点回滚不影响外层"""
        with self.tm.transaction() as tx:
            tx.session.add(TxNote(title="WillKeep"))
            tx.flush()

            with pytest.raises(ValueError):
                with tx.savepoint("sp1"):
                    tx.session.add(TxNote(title="WillRollback"))
                    tx.flush()
                    raise ValueError("Savepoint rollback")

        assert self.count_notes("WillKeep") == 1
        assert self.count_notes("WillRollback") == 0

    def test_auto_named_savepoint(self):
        """测试自动命名保存点"""
        with self.tm.transaction() as tx:
            with tx.savepoint() as sp1:
                assert sp1.name.startswith("sp_")
                assert tx.get_savepoint(sp1.name) is sp1

            with tx.savepoint() as sp2:
                assert sp2.name != sp1.name

    def test_rollback_to_unknown_savepoint(self):
        with self.tm.transaction() as tx:
            with pytest.raises(SavepointNotFoundError):
                tx.rollback_to_savepoint("missing")


# ==================== 传播行为测试 ====================

class TestTransactionPropagation(TransactionTestBase):
    """事务传播行为测试"""

    def test_propagation_required_join_existing(self):
        """测试 REQUIRED：加入现有事务"""
        with self.tm.transaction() as outer_tx:
            outer_level = outer_tx.nesting_level

            with self.tm.transaction(propagation=TransactionPropagation.REQUIRED) as inner_tx:
                assert inner_tx is outer_tx
                assert inner_tx.nesting_level == outer_level + 1

            assert outer_tx.nesting_level == outer_level

    def test_propagation_required_new_when_no_existing(self):
        """测试 REQUIRED：无现有事务时创建新事务"""
        with self.tm.transaction(propagation=TransactionPropagation.REQUIRED) as tx:
            assert tx.is_active
            assert tx.nesting_level == 1

    def test_required_inner_error_rolls_back_outer(self):
        """测试 REQUIRED：内层异常回滚整个事务"""
        with pytest.raises(ValueError):
            with self.tm.transaction() as tx:
                tx.session.add(TxNote(title="Outer"))
                tx.flush()
                with self.tm.transaction():
                    raise ValueError("inner")

        assert self.count_notes() == 0

    def test_propagation_mandatory_requires_existing(self):
        """测试 MANDATORY：必须在事务中"""
        with pytest.raises(PropagationError) as exc_info:
            with self.tm.transaction(propagation=TransactionPropagation.MANDATORY):
                pass

        assert "MANDATORY" in str(exc_info.value)

    def test_propagation_mandatory_with_existing(self):
        """测试 MANDATORY：有现有事务时正常执行"""
        with self.tm.transaction() as outer_tx:
            with self.tm.transaction(propagation=TransactionPropagation.MANDATORY) as inner_tx:
                assert inner_tx is outer_tx

    def test_propagation_nested_creates_savepoint(self):
        """测试 NESTED：内层回滚只回滚到保存点"""
        with self.tm.transaction() as tx:
            tx.session.add(TxNote(title="Outer"))
            tx.flush()

            with pytest.raises(ValueError):
                with self.tm.transaction(propagation=TransactionPropagation.NESTED):
                    tx.session.add(TxNote(title="Nested"))
                    tx.flush()
                    raise ValueError("Nested rollback")

        assert self.count_notes("Outer") == 1
        assert self.count_notes("Nested") == 0

    def test_requires_new_without_existing(self):
        """测试 REQUIRES_NEW：无现有事务时创建新事务"""
        with self.tm.transaction(propagation=TransactionPropagation.REQUIRES_NEW) as tx:
            assert tx.nesting_level == 1

    def test_propagation_nested_requires_existing(self):
        """测试 NESTED：需要外层事务"""
        with pytest.raises(PropagationError) as exc_info:
            with self.tm.transaction(propagation=TransactionPropagation.NESTED):
                pass

        assert "NESTED" in str(exc_info.value)


# ==================== 提交抑制测试 ====================

class TestCommitSuppression(TransactionTestBase):
    """提交抑制测试"""

    def test_commit_true_suppressed_in_transaction(self):
        """测试 save(commit=True) 在事务中只 flush"""
        with pytest.raises(ValueError):
            with self.tm.transaction():
                note = TxNote(title="Suppressed")
                note.save(commit=True)
                assert note.id is not None
                raise ValueError("Rollback test")

        assert self.count_notes("Suppressed") == 0

    def test_commit_true_outside_transaction(self):
        note = TxNote(title="Committed").save(commit=True)
        self.session_scope().rollback()

        assert TxNote.get(note.id) is not None

    def test_suppress_commit_disabled(self):
        """测试禁用提交抑制"""
        with self.tm.transaction(suppress_commit=False) as tx:
            assert tx.should_suppress_commit() is False

    def test_should_suppress_commit_method(self):
        """测试 should_suppress_commit 方法"""
        assert self.tm.should_suppress_commit() is False

        with self.tm.transaction() as tx:
            assert self.tm.should_suppress_commit() is True
            assert tx.should_suppress_commit() is True


# ==================== 装饰器测试 ====================

class TestTransactionalDecorator(TransactionTestBase):
    """@transactional 装饰器测试"""

    def test_transactional_decorator_commits(self):
        """测试装饰器正常提交"""
        @self.tm.transactional()
        def create_note(title: str):
            return TxNote(title=title).save(commit=True)

        note = create_note("Decorated")
        self.session_scope().rollback()

        found = TxNote.get(note.id)
        assert found is not None
        assert found.title == "Decorated"

    def test_transactional_decorator_rollback_on_exception(self):
        """测试装饰器异常时回滚"""
        @self.tm.transactional()
        def create_with_error(title: str):
            TxNote(title=title).save(commit=True)
            raise ValueError("Simulated error")

        with pytest.raises(ValueError):
            create_with_error("WillRollback")

        assert self.count_notes("WillRollback") == 0

    def test_transactional_with_propagation(self):
        """测试装饰器的传播行为"""
        @self.tm.transactional(propagation=TransactionPropagation.MANDATORY)
        def inner_function():
            return get_current_transaction()

        with pytest.raises(PropagationError):
            inner_function()

        with self.tm.transaction() as tx:
            assert inner_function() is tx
