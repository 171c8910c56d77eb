"""
文档存储模块 - 启动时数据修复

修复历史数据中缺失的 slug / path / JRN，以及同级节点重复的 sort_order。
每一步在独立事务中执行；某一步失败只记录日志并回滚该步，后续步骤照常执行。

使用示例:
    from ydoc.docs import DocMigrationSweeper

    report = DocMigrationSweeper(session).run()
    if not report.ok:
        logger.warning(report.failures)
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ydoc.log import get_logger
from ydoc.orm import transaction_manager as tm
from ydoc.orm.sortable import has_duplicate_orders, renumber
from ydoc.orm.tree import build_path
from ydoc.utils import now_millis, timestamped_slug

from .base import DocComponent
from .jrn import JRN_SCHEME, jrn_for, last_segment
from .models import Doc

logger = get_logger("ydoc.docs.migration")


@dataclass
class SweepReport:
    """数据修复结果

    属性:
        repaired: 每一步修复的行数
        failures: 失败步骤及错误信息
    """
    repaired: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total(self) -> int:
        return sum(self.repaired.values())


class DocMigrationSweeper(DocComponent):
    """启动时数据修复（顺序执行，不与自身并发）"""

    PASSES = (
        "migrate_slugs",
        "migrate_paths",
        "migrate_jrns",
        "migrate_sort_orders",
    )

    def run(self) -> SweepReport:
        report = SweepReport()
        for name in self.PASSES:
            try:
                with tm.transaction(self.session):
                    count = getattr(self, name)()
            except Exception as e:
                logger.error(f"数据修复 {name} 失败: {e}", exc_info=True)
                report.failures[name] = str(e)
                continue
            report.repaired[name] = count
            if count:
                logger.info(f"数据修复 {name} 完成，共 {count} 行")
            else:
                logger.debug(f"数据修复 {name} 无需处理")
        return report

    def migrate_slugs(self) -> int:
        """slug 为空的行按标题（或 JRN 末段）生成带时间戳的 slug"""
        docs = (
            self.session.query(Doc)
            .filter((Doc.slug.is_(None)) | (Doc.slug == ""))
            .order_by(Doc.id.asc())
            .all()
        )
        timestamp = now_millis()
        for offset, doc in enumerate(docs):
            title = doc.title or last_segment(doc.jrn) or self.settings.untitled_slug
            # 每行使用不同的时间戳，避免同名文档生成相同 slug
            doc.slug = timestamped_slug(title, timestamp + offset, default=self.settings.untitled_slug)
            logger.info(f"为文档 {doc.id} ({doc.jrn}) 生成 slug: {doc.slug}")
        return len(docs)

    def migrate_paths(self) -> int:
        """path 为空的未删除行按层级计算 path，父节点先于子节点"""
        docs = (
            self.session.query(Doc)
            .filter((Doc.path.is_(None)) | (Doc.path == ""), Doc.deleted_at.is_(None))
            .order_by(Doc.id.asc())
            .all()
        )
        remaining = {doc.id: doc for doc in docs}
        path_map: Dict[int, str] = {}

        while remaining:
            ready = [d for d in remaining.values() if d.parent_id is None or d.parent_id not in remaining]
            if not ready:
                # 历史数据中存在环，剩余节点按数据库中已有的父路径计算
                ready = list(remaining.values())
            for doc in ready:
                doc.path = build_path(self._parent_path(doc.parent_id, path_map), doc.slug)
                path_map[doc.id] = doc.path
                del remaining[doc.id]
                logger.debug(f"为文档 {doc.id} 生成 path: {doc.path}")
        return len(docs)

    def _parent_path(self, parent_id: Optional[int], path_map: Dict[int, str]) -> Optional[str]:
        if parent_id is None:
            return None
        if parent_id in path_map:
            return path_map[parent_id]
        parent = self.session.get(Doc, parent_id)
        return parent.path if parent is not None else None

    def migrate_jrns(self) -> int:
        """旧格式 JRN（不以 jrn: 开头）改写为 folder/document JRN"""
        docs = (
            self.session.query(Doc)
            .filter(~Doc.jrn.startswith(JRN_SCHEME, autoescape=True))
            .order_by(Doc.id.asc())
            .all()
        )
        for doc in docs:
            new_jrn = jrn_for(doc.doc_type, doc.slug, self.settings.jrn_workspace)
            logger.info(f"迁移文档 {doc.id} JRN: {doc.jrn} -> {new_jrn}")
            doc.jrn = new_jrn
        return len(docs)

    def migrate_sort_orders(self) -> int:
        """同级存在重复 sort_order 的分组按当前顺序重新编号为 1.0, 2.0, ..."""
        docs = self.session.query(Doc).filter(Doc.deleted_at.is_(None)).all()
        groups: Dict[Tuple[Optional[int], Optional[int]], List[Doc]] = defaultdict(list)
        for doc in docs:
            groups[(doc.space_id, doc.parent_id)].append(doc)

        count = 0
        for (space_id, parent_id), siblings in groups.items():
            if not has_duplicate_orders(siblings):
                continue
            for doc, new_order in renumber(siblings):
                doc.sort_order = new_order
            count += len(siblings)
            logger.info(f"空间 {space_id} 父节点 {parent_id} 下 {len(siblings)} 个节点重新编号")
        return count
