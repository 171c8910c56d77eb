"""
文档存储模块 - 数据访问

只读查询与管理性的物理删除。层级变更（创建、移动、排序、软删除、恢复）见 tree_mutator，
内容更新见 concurrency。

使用示例:
    from ydoc.docs import DocDao, ALL

    dao = DocDao(session)
    dao.get_tree_content(space_id=1)               # 整个空间
    dao.get_tree_content(space_id=1, parent_id=None)  # 根级
    dao.get_tree_content(space_id=1, parent_id=7)     # 文件夹 7 的子节点
"""

import posixpath
from typing import Any, Iterable, List, Optional

from sqlalchemy import func

from ydoc.log import get_logger
from ydoc.orm import transaction_manager as tm
from ydoc.orm.tree import is_descendant_node

from .base import DocComponent
from .enums import DocType
from .jrn import article_jrn_prefix
from .models import Doc

logger = get_logger("ydoc.docs.dao")


class _AllParents:
    """get_tree_content 的哨兵：不按 parent_id 过滤"""

    def __repr__(self):
        return "ALL"


ALL = _AllParents()


def _parent_filter(parent_id: Optional[int]):
    if parent_id is None:
        return Doc.parent_id.is_(None)
    return Doc.parent_id == parent_id


def _source_path(doc: Doc) -> Optional[str]:
    return (doc.source_metadata or {}).get("path")


def _matches_integration(doc: Doc, integration_id: Any) -> bool:
    if integration_id is None:
        return True
    return (doc.source or {}).get("integrationId") == integration_id


class DocDao(DocComponent):
    """文档查询"""

    def _query(self):
        return self.session.query(Doc)

    def _active(self):
        return self._query().filter(Doc.deleted_at.is_(None))

    # ==================== 单条 / 批量读取 ====================

    def read_doc(self, jrn: str) -> Optional[Doc]:
        return self._query().filter(Doc.jrn == jrn).first()

    def read_doc_by_id(self, doc_id: int) -> Optional[Doc]:
        return self.session.get(Doc, doc_id)

    def read_docs_by_jrns(self, jrns: Iterable[str]) -> List[Doc]:
        """按 JRN 批量读取，不存在的 JRN 直接跳过"""
        jrns = list(jrns)
        if not jrns:
            return []
        return self._query().filter(Doc.jrn.in_(jrns)).all()

    def list_docs(
        self,
        starts_with_jrn: Optional[str] = None,
        include_root: bool = False,
        space_id: Optional[int] = None,
    ) -> List[Doc]:
        """列出文档，按更新时间倒序

        默认排除 JRN 以内部前缀（/root）开头的系统文档。
        """
        query = self._query()
        if not include_root:
            query = query.filter(~Doc.jrn.startswith(self.settings.internal_jrn_prefix, autoescape=True))
        if starts_with_jrn:
            query = query.filter(Doc.jrn.startswith(starts_with_jrn, autoescape=True))
        if space_id is not None:
            query = query.filter(Doc.space_id == space_id)
        return query.order_by(Doc.updated_at.desc(), Doc.id.desc()).all()

    def search_docs_by_title(self, title: str) -> List[Doc]:
        prefix = article_jrn_prefix(title, self.settings.jrn_workspace)
        return (
            self._query()
            .filter(Doc.jrn.startswith(prefix, autoescape=True))
            .order_by(Doc.updated_at.desc(), Doc.id.desc())
            .all()
        )

    def get_all_content(self) -> List[str]:
        """所有未删除、非内部文档的内容"""
        rows = (
            self.session.query(Doc.content)
            .filter(
                Doc.deleted_at.is_(None),
                ~Doc.jrn.startswith(self.settings.internal_jrn_prefix, autoescape=True),
            )
            .all()
        )
        return [row.content for row in rows]

    # ==================== 树查询 ====================

    def get_tree_content(self, space_id: int, parent_id: Any = ALL) -> List[Doc]:
        """空间内未删除的节点，按 sort_order 升序

        Args:
            parent_id: ALL 返回整个空间，None 返回根级，整数返回该文件夹的直接子节点
        """
        query = self._active().filter(Doc.space_id == space_id)
        if parent_id is not ALL:
            query = query.filter(_parent_filter(parent_id))
        return query.order_by(Doc.sort_order.asc(), Doc.id.asc()).all()

    def get_siblings(self, space_id: Optional[int], parent_id: Optional[int], exclude_id: Optional[int] = None) -> List[Doc]:
        """同一空间、同一父节点下未删除的兄弟节点"""
        query = self._active().filter(Doc.space_id == space_id, _parent_filter(parent_id))
        if exclude_id is not None:
            query = query.filter(Doc.id != exclude_id)
        return query.order_by(Doc.sort_order.asc(), Doc.id.asc()).all()

    def get_trash_content(self, space_id: int) -> List[Doc]:
        """回收站：只包含被直接删除的节点，按删除时间倒序"""
        return (
            self._query()
            .filter(
                Doc.space_id == space_id,
                Doc.deleted_at.isnot(None),
                Doc.explicitly_deleted.is_(True),
            )
            .order_by(Doc.deleted_at.desc(), Doc.id.desc())
            .all()
        )

    def get_max_sort_order(self, space_id: int, parent_id: Optional[int] = None) -> float:
        """同级未删除节点的最大 sort_order，没有兄弟时为 0"""
        result = (
            self.session.query(func.max(Doc.sort_order))
            .filter(
                Doc.space_id == space_id,
                Doc.deleted_at.is_(None),
                _parent_filter(parent_id),
            )
            .scalar()
        )
        return result if result is not None else 0

    def has_deleted_docs(self, space_id: int) -> bool:
        count = (
            self._query()
            .filter(
                Doc.space_id == space_id,
                Doc.deleted_at.isnot(None),
                Doc.explicitly_deleted.is_(True),
            )
            .count()
        )
        return count > 0

    def get_descendant_ids(self, doc_id: int) -> List[int]:
        """所有后代节点ID（含已删除），广度优先"""
        ids: List[int] = []
        queue = [doc_id]
        while queue:
            parent_ids, queue = queue, []
            rows = self.session.query(Doc.id).filter(Doc.parent_id.in_(parent_ids)).all()
            for row in rows:
                ids.append(row.id)
                queue.append(row.id)
        return ids

    def is_descendant_of(self, target_id: int, ancestor_id: int) -> bool:
        """target 是否是 ancestor 本身或其后代（物化路径前缀比较）

        任一节点不存在时返回 False。
        """
        target = self.read_doc_by_id(target_id)
        ancestor = self.read_doc_by_id(ancestor_id)
        if target is None or ancestor is None:
            return False
        return is_descendant_node(target, ancestor)

    # ==================== 按名称 / 来源查找 ====================

    def find_folder_by_name(self, space_id: int, parent_id: Optional[int], name: str) -> Optional[Doc]:
        """同一位置下标题完全相同的未删除文件夹"""
        return (
            self._active()
            .filter(
                Doc.space_id == space_id,
                _parent_filter(parent_id),
                Doc.doc_type == DocType.FOLDER.value,
                Doc.content_metadata["title"].as_string() == name,
            )
            .order_by(Doc.id.asc())
            .first()
        )

    def find_doc_by_source_path(self, space_id: int, path: str, integration_id: Any = None) -> Optional[Doc]:
        """按来源路径查找（空间内），先精确匹配，再按文件名兜底"""
        query = self._active().filter(Doc.space_id == space_id)
        return self._find_by_source_path(query, path, integration_id)

    def find_doc_by_source_path_any_space(self, path: str, integration_id: Any = None) -> Optional[Doc]:
        """按来源路径查找（不限空间）"""
        return self._find_by_source_path(self._active(), path, integration_id)

    def _find_by_source_path(self, query, path: str, integration_id: Any) -> Optional[Doc]:
        source_path = Doc.source_metadata["path"].as_string()

        exact = query.filter(source_path == path).order_by(Doc.id.asc()).all()
        for doc in exact:
            if _matches_integration(doc, integration_id):
                return doc

        file_name = posixpath.basename(path)
        if not file_name:
            return None
        candidates = (
            query.filter(source_path.endswith(file_name, autoescape=True))
            .order_by(Doc.id.asc())
            .all()
        )
        for doc in candidates:
            if posixpath.basename(_source_path(doc) or "") == file_name and _matches_integration(doc, integration_id):
                logger.debug(f"来源路径 {path} 未精确命中，按文件名匹配到文档 {doc.id}")
                return doc
        return None

    # ==================== 管理性物理删除 ====================

    def delete_doc(self, jrn: str) -> int:
        """按 JRN 物理删除，返回删除行数"""
        with tm.transaction(self.session):
            count = self._query().filter(Doc.jrn == jrn).delete(synchronize_session="fetch")
        logger.info(f"物理删除文档 {jrn}，共 {count} 行")
        return count

    def delete_all_docs(self) -> int:
        with tm.transaction(self.session):
            count = self._query().delete(synchronize_session="fetch")
        logger.warning(f"已物理删除全部文档，共 {count} 行")
        return count
