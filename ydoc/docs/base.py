"""
文档存储模块 - 组件基类

DAO、树操作、并发更新、数据修复共用的会话与配置绑定。
"""

from typing import Optional, Union

from sqlalchemy.orm import Session, scoped_session

from ydoc.config import DocStoreSettings
from ydoc.orm import db_manager


SessionLike = Union[Session, scoped_session]


class DocComponent:
    """绑定 session 与 DocStoreSettings 的组件基类

    不传 session 时使用全局 db_manager 的当前作用域 session。
    """

    def __init__(self, session: Optional[SessionLike] = None, settings: Optional[DocStoreSettings] = None):
        self._session = session
        self.settings = settings or DocStoreSettings()

    @property
    def session(self) -> SessionLike:
        if self._session is not None:
            return self._session
        return db_manager.get_session()
