"""
文档存储模块 - 内容更新的并发控制

两种更新方式:
    - update_doc: 仅当传入版本大于当前版本时写入，否则返回 None（不是错误）
    - update_doc_if_version: 在事务中加行锁读取，版本与期望值一致时写入，
      不一致或行不存在时回滚并返回 CONFLICT（不抛异常，调用方应重新读取后重试）

两者都只修改内容字段，层级字段（parent_id / path / slug / sort_order）只能通过树操作修改。

使用示例:
    from ydoc.docs import DocConcurrencyGate, DocUpdate, is_conflict

    gate = DocConcurrencyGate(session)
    result = gate.update_doc_if_version(DocUpdate(jrn=doc.jrn, version=doc.version + 1,
                                                  content="# new"), doc.version)
    if is_conflict(result):
        ...  # 重新读取后重试
"""

from typing import Optional, Union

from ydoc.log import get_logger
from ydoc.orm import TransactionPropagation, transaction_manager as tm

from .base import DocComponent
from .dao import DocDao
from .models import Doc
from .schemas import DocUpdate

logger = get_logger("ydoc.docs.concurrency")


class VersionConflict:
    """版本冲突哨兵（单例）"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "CONFLICT"


CONFLICT = VersionConflict()


def is_conflict(result) -> bool:
    return result is CONFLICT


class _VersionMismatch(Exception):
    """事务内部信号：触发回滚后转换为 CONFLICT"""


def _apply_content(doc: Doc, update: DocUpdate) -> None:
    for field, value in update.content_fields().items():
        setattr(doc, field, value)


class DocConcurrencyGate(DocComponent):
    """内容更新"""

    def __init__(self, session=None, settings=None, dao: DocDao = None):
        super().__init__(session, settings)
        self.dao = dao or DocDao(session, self.settings)

    def update_doc(self, update: DocUpdate) -> Optional[Doc]:
        """新版本覆盖写入

        调用方已在同一 session 的事务中时加入该事务。

        Returns:
            更新后的文档；文档不存在或版本不大于当前版本时返回 None
        """
        with tm.transaction(self.session):
            current = self.dao.read_doc(update.jrn)
            if current is None:
                logger.debug(f"文档 {update.jrn} 不存在，跳过更新")
                return None
            if update.version <= current.version:
                logger.debug(f"文档 {update.jrn} 版本 {update.version} 不大于当前版本 {current.version}，跳过更新")
                return None
            _apply_content(current, update)
            current.version = update.version

        logger.info(f"更新文档 {update.jrn} 到版本 {update.version}")
        return current

    def update_doc_if_version(self, update: DocUpdate, expected_version: int) -> Union[Doc, VersionConflict]:
        """比较并交换：行锁读取，版本等于 expected_version 时写入

        写入后的版本固定为 expected_version + 1，因此同一个 expected_version 最多成功一次。
        调用方已在事务中时在保存点内执行，冲突只回滚到保存点。

        Returns:
            更新后的文档，或 CONFLICT
        """
        session = self.session
        try:
            with tm.transaction(session, propagation=TransactionPropagation.REQUIRES_NEW) as tx:
                current = (
                    tx.session.query(Doc)
                    .filter(Doc.jrn == update.jrn)
                    .with_for_update()
                    .populate_existing()
                    .first()
                )
                if current is None or current.version != expected_version:
                    raise _VersionMismatch()
                _apply_content(current, update)
                current.version = expected_version + 1
        except _VersionMismatch:
            logger.info(f"文档 {update.jrn} 版本冲突，期望版本 {expected_version}")
            return CONFLICT

        logger.info(f"文档 {update.jrn} 版本 {expected_version} -> {expected_version + 1}")
        return current
