"""
ORM基础模型

提供声明式基类、时间戳字段和常用的 CRUD 方法
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional, TYPE_CHECKING

from sqlalchemy import Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, declarative_base, Session, Query

if TYPE_CHECKING:
    from typing_extensions import Self


# 声明基类
Base = declarative_base()


class CoreModel(Base):
    """ORM基础模型类

    提供功能：
    - 自增整数主键（由存储分配，不复用）
    - 创建/更新/软删除时间戳
    - 常用 CRUD 方法

    使用示例:
        from ydoc.orm import CoreModel, init_database

        init_database("sqlite:///./docs.db")

        class Note(CoreModel):
            __tablename__ = "note"
            title: Mapped[str] = mapped_column(String(100))

        note = Note(title="hello").save(commit=True)
    """
    __abstract__ = True

    # query 属性由 init_database() 或测试夹具通过 scoped_session.query_property() 设置
    if TYPE_CHECKING:
        query: ClassVar[Query[Self]]
    query = None

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        comment="创建时间"
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False),
        nullable=True,
        default=datetime.now,
        onupdate=datetime.now,
        comment="更新时间"
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False),
        nullable=True,
        default=None,
        comment="删除时间（软删除标记）"
    )

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"

    @property
    def session(self) -> Session:
        """获取当前 session

        优先使用对象已归属的 session，其次从 query 属性获取，最后回落到全局 scoped_session
        """
        session = Session.object_session(self)
        if session is not None:
            return session
        if self.__class__.query is not None:
            return self.__class__.query.session
        from .db_session import db_manager
        return db_manager.get_session()

    @property
    def is_deleted(self) -> bool:
        """是否已软删除"""
        return self.deleted_at is not None

    # ==================== CRUD 操作方法 ====================

    def save(self, commit: bool = False) -> Self:
        """保存对象（新增或更新）

        Args:
            commit: 是否立即提交；在事务上下文中提交被抑制，仅 flush
        """
        session = self.session
        session.add(self)
        self._commit_or_flush(session, commit)
        return self

    @staticmethod
    def _commit_or_flush(session: Session, commit: bool) -> None:
        if not commit:
            return
        from .transaction import transaction_manager
        if transaction_manager.should_suppress_commit():
            session.flush()
        else:
            session.commit()

    @classmethod
    def get(cls, id: int):
        """根据ID获取对象，不存在返回None"""
        return cls.query.filter_by(id=id).first()

