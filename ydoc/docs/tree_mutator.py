"""
文档存储模块 - 树操作

创建、移动、排序、重命名、软删除与恢复。所有 path 写入都经过 build_path，
多行变更在同一个事务中完成，失败时回滚并原样抛出异常。

结构校验（自身移动、循环移动、目标无效、参照节点不在范围内）在开启事务前完成。

使用示例:
    from ydoc.docs import DocTreeMutator, DocCreate, DocType, Position

    mutator = DocTreeMutator(session)
    folder = mutator.create_doc(DocCreate(doc_type=DocType.FOLDER, space_id=1,
                                          content_metadata={"title": "Guides"}))
    doc = mutator.create_doc(DocCreate(space_id=1, parent_id=folder.id))
    mutator.move_doc(doc.id, None, reference_id=other.id, position=Position.BEFORE)
    mutator.soft_delete(folder.id)
    mutator.restore(folder.id)
"""

from datetime import datetime
from typing import List, Optional, Tuple

from ydoc.exceptions import (
    CyclicMoveException,
    DocNotFoundException,
    ParentNotFoundException,
    ReferenceNotInTargetFolderException,
    ReferenceNotSiblingException,
    SelfMoveException,
    TargetDeletedException,
    TargetNotFolderException,
    TargetNotFoundException,
)
from ydoc.log import get_logger
from ydoc.orm import transaction_manager as tm
from ydoc.orm.sortable import (
    Position,
    at_end,
    is_already_at_position,
    relative_to_reference,
    sort_siblings,
)
from ydoc.orm.tree import build_path
from ydoc.utils import now_millis, timestamped_slug

from .base import DocComponent, SessionLike
from .dao import DocDao
from .enums import DocType, MoveDirection
from .jrn import jrn_for
from .models import Doc
from .schemas import DocCreate

logger = get_logger("ydoc.docs.tree")


class DocTreeMutator(DocComponent):
    """树结构变更"""

    def __init__(self, session: SessionLike = None, settings=None, dao: DocDao = None):
        super().__init__(session, settings)
        self.dao = dao or DocDao(session, self.settings)

    def _require(self, doc_id: int) -> Doc:
        doc = self.dao.read_doc_by_id(doc_id)
        if doc is None:
            raise DocNotFoundException(doc_id)
        return doc

    def _require_active(self, doc_id: int) -> Doc:
        doc = self._require(doc_id)
        if doc.is_deleted:
            raise DocNotFoundException(doc_id)
        return doc

    # ==================== 创建 ====================

    def create_doc(self, data: DocCreate) -> Doc:
        """创建节点

        slug 缺省时由标题生成并追加毫秒时间戳；jrn 缺省时由 doc_type + slug 推导；
        path 缺省时基于父节点当前路径计算；sort_order 缺省时排在同级末尾。

        父节点不存在或已删除时回落到根级；启用 strict_parent 时抛出 ParentNotFoundException。
        父节点是文档时抛出 TargetNotFolderException。
        """
        doc_type = DocType(data.doc_type)
        title = (data.content_metadata or {}).get("title")
        if data.slug:
            slug = data.slug
            jrn = data.jrn or jrn_for(doc_type, slug, self.settings.jrn_workspace)
        else:
            slug, jrn = self._generate_identity(doc_type, title, data.jrn)

        parent_id = data.parent_id
        parent_path = None
        if parent_id is not None:
            parent = self.dao.read_doc_by_id(parent_id)
            if parent is None or parent.is_deleted:
                if self.settings.strict_parent:
                    raise ParentNotFoundException(parent_id)
                logger.warning(f"父节点 {parent_id} 不存在或已删除，{jrn} 创建在根级")
                parent_id = None
            elif not parent.is_folder:
                raise TargetNotFolderException()
            else:
                parent_path = parent.path

        path = data.path or build_path(parent_path, slug)
        sort_order = data.sort_order
        if sort_order is None:
            sort_order = at_end(self.dao.get_siblings(data.space_id, parent_id))

        doc = Doc(
            jrn=jrn,
            slug=slug,
            path=path,
            doc_type=doc_type.value,
            space_id=data.space_id,
            parent_id=parent_id,
            sort_order=sort_order,
            version=1,
            explicitly_deleted=False,
            content=data.content,
            content_type=data.content_type or self.settings.default_content_type,
            content_metadata=data.content_metadata,
            source=data.source,
            source_metadata=data.source_metadata,
        )
        with tm.transaction(self.session) as tx:
            tx.session.add(doc)
            tx.flush()
        logger.info(f"创建{doc_type.value} {doc.id}: {path}")
        return doc

    def _generate_identity(self, doc_type: DocType, title: Optional[str], jrn: Optional[str]) -> Tuple[str, str]:
        """生成带时间戳的 slug 与对应 JRN

        同一毫秒内同名创建会得到相同 JRN，此时时间戳后移 1ms 直到 JRN 可用。
        """
        timestamp = now_millis()
        while True:
            slug = timestamped_slug(title, timestamp, default=self.settings.untitled_slug)
            if jrn:
                return slug, jrn
            candidate = jrn_for(doc_type, slug, self.settings.jrn_workspace)
            if self.dao.read_doc(candidate) is None:
                return slug, candidate
            timestamp += 1

    # ==================== 移动 ====================

    def move_doc(
        self,
        doc_id: int,
        new_parent_id: Optional[int] = None,
        reference_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> Doc:
        """移动节点到新父节点（None 表示根级），可选放在参照节点之前/之后

        文件夹移动时同时重写所有后代的 path 并递增其 version。

        Raises:
            DocNotFoundException: 节点不存在或已删除
            SelfMoveException / CyclicMoveException: 移动到自身或自身后代
            TargetNotFoundException / TargetDeletedException / TargetNotFolderException: 目标无效
            ReferenceNotInTargetFolderException: 参照节点不在目标文件夹中
        """
        doc = self._require_active(doc_id)

        if new_parent_id == doc.parent_id and reference_id is None:
            logger.debug(f"节点 {doc_id} 已在父节点 {new_parent_id} 下，跳过移动")
            return doc

        target_path = self._validate_move_target(doc, new_parent_id)
        new_path = build_path(target_path, doc.slug)

        siblings = self.dao.get_siblings(doc.space_id, new_parent_id, exclude_id=doc.id)
        if reference_id is None:
            new_order = at_end(siblings)
        else:
            try:
                new_order = relative_to_reference(siblings, reference_id, position or Position.AFTER)
            except ReferenceNotSiblingException:
                raise ReferenceNotInTargetFolderException(reference_id)

        with tm.transaction(self.session):
            doc.parent_id = new_parent_id
            doc.path = new_path
            doc.sort_order = new_order
            doc.version += 1
            if doc.is_folder:
                self._rewrite_descendant_paths(doc.id, new_path, bump_version=True)

        logger.info(f"移动节点 {doc_id} 到 {new_parent_id}: {new_path} (sort_order={new_order})")
        return doc

    def _validate_move_target(self, doc: Doc, new_parent_id: Optional[int]) -> Optional[str]:
        """校验移动目标，返回目标路径（根级为 None）"""
        if new_parent_id is None:
            return None
        if new_parent_id == doc.id:
            raise SelfMoveException()
        if doc.is_folder and self.dao.is_descendant_of(new_parent_id, doc.id):
            raise CyclicMoveException()

        target = self.dao.read_doc_by_id(new_parent_id)
        # 跨空间的目标视为不存在
        if target is None or target.space_id != doc.space_id:
            raise TargetNotFoundException()
        if target.is_deleted:
            raise TargetDeletedException()
        if not target.is_folder:
            raise TargetNotFolderException()
        return target.path

    def _rewrite_descendant_paths(self, root_id: int, root_path: str, bump_version: bool = False) -> int:
        """按已更新的祖先路径重写所有后代 path（显式栈，父节点先于子节点）"""
        count = 0
        stack: List[Tuple[int, str]] = [(root_id, root_path)]
        while stack:
            parent_id, parent_path = stack.pop()
            children = self.session.query(Doc).filter(Doc.parent_id == parent_id).all()
            for child in children:
                child.path = build_path(parent_path, child.slug)
                if bump_version:
                    child.version += 1
                count += 1
                if child.is_folder:
                    stack.append((child.id, child.path))
        return count

    # ==================== 排序 ====================

    def reorder_at(
        self,
        doc_id: int,
        reference_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> Doc:
        """在同级内把节点放到参照节点之前/之后（无参照时放到末尾），不改变父节点

        已处于目标位置时不做任何写入。

        Raises:
            DocNotFoundException: 节点不存在或已删除
            ReferenceNotSiblingException: 参照节点不是兄弟节点
        """
        doc = self._require_active(doc_id)
        position = Position(position or Position.AFTER)

        if reference_id == doc.id:
            logger.debug(f"节点 {doc_id} 以自身为参照，跳过排序")
            return doc

        siblings = self.dao.get_siblings(doc.space_id, doc.parent_id)
        if is_already_at_position(siblings, doc.id, reference_id, position):
            logger.debug(f"节点 {doc_id} 已在目标位置，跳过排序")
            return doc

        others = [s for s in siblings if s.id != doc.id]
        if reference_id is None:
            new_order = at_end(others)
        else:
            new_order = relative_to_reference(others, reference_id, position)

        with tm.transaction(self.session):
            doc.sort_order = new_order

        logger.info(f"节点 {doc_id} 排序调整为 {new_order}")
        return doc

    def reorder_doc(self, doc_id: int, direction: MoveDirection) -> Optional[Doc]:
        """与相邻兄弟交换 sort_order（上移/下移）

        节点不存在、已删除或已在边界时返回 None。
        """
        doc = self.dao.read_doc_by_id(doc_id)
        if doc is None or doc.is_deleted:
            return None

        siblings = sort_siblings(self.dao.get_siblings(doc.space_id, doc.parent_id))
        index = next(i for i, s in enumerate(siblings) if s.id == doc.id)
        direction = MoveDirection(direction)
        neighbor_index = index - 1 if direction == MoveDirection.UP else index + 1
        if neighbor_index < 0 or neighbor_index >= len(siblings):
            logger.debug(f"节点 {doc_id} 已在边界，无法{direction.value}")
            return None

        neighbor = siblings[neighbor_index]
        with tm.transaction(self.session):
            doc.sort_order, neighbor.sort_order = neighbor.sort_order, doc.sort_order

        logger.info(f"节点 {doc_id} 与 {neighbor.id} 交换排序")
        return doc

    # ==================== 重命名 ====================

    def rename_doc(self, doc_id: int, title: str) -> Optional[Doc]:
        """只修改 content_metadata 中的标题，slug 与 path 保持不变"""
        doc = self.dao.read_doc_by_id(doc_id)
        if doc is None:
            return None

        with tm.transaction(self.session):
            # 赋值新字典，JSON 列才会被识别为已修改
            doc.content_metadata = {**(doc.content_metadata or {}), "title": title}
            doc.version += 1

        logger.info(f"节点 {doc_id} 重命名为 {title!r}")
        return doc

    # ==================== 软删除 / 恢复 ====================

    def soft_delete(self, doc_id: int) -> Doc:
        """软删除节点及其后代

        目标节点标记为直接删除；后代标记为级联删除，但已被单独删除的后代保持原标记，
        这样恢复祖先时不会把它们一起恢复。
        """
        doc = self._require(doc_id)
        now = datetime.now()
        descendant_ids = self.dao.get_descendant_ids(doc_id)

        with tm.transaction(self.session):
            doc.deleted_at = now
            doc.explicitly_deleted = True
            if descendant_ids:
                self._cascade_delete(descendant_ids, now)

        logger.info(f"软删除节点 {doc_id}，级联后代 {len(descendant_ids)} 个")
        return doc

    def _cascade_delete(self, descendant_ids: List[int], deleted_at: datetime) -> int:
        return (
            self.session.query(Doc)
            .filter(Doc.id.in_(descendant_ids), Doc.explicitly_deleted.is_(False))
            .update({Doc.deleted_at: deleted_at, Doc.explicitly_deleted: False}, synchronize_session="fetch")
        )

    def restore(self, doc_id: int) -> Optional[Doc]:
        """恢复软删除的节点

        父节点存在且未删除时按父节点当前路径重算 path，否则移到根级。
        sort_order 与新位置的兄弟节点重复，或节点被移到根级时，改为排在同级末尾。
        文件夹会一并恢复级联删除的后代，被单独删除的后代保持删除。
        节点不存在或未删除时不做任何操作。
        """
        doc = self.dao.read_doc_by_id(doc_id)
        if doc is None or not doc.is_deleted:
            logger.debug(f"节点 {doc_id} 不存在或未删除，跳过恢复")
            return doc

        parent_path = None
        new_parent_id = doc.parent_id
        if doc.parent_id is not None:
            parent = self.dao.read_doc_by_id(doc.parent_id)
            if parent is not None and not parent.is_deleted:
                parent_path = parent.path
            else:
                logger.warning(f"节点 {doc_id} 的父节点 {doc.parent_id} 不可用，恢复到根级")
                new_parent_id = None

        new_path = build_path(parent_path, doc.slug)
        new_order = doc.sort_order
        siblings = self.dao.get_siblings(doc.space_id, new_parent_id, exclude_id=doc.id)
        moved_to_root = new_parent_id is None and doc.parent_id is not None
        if moved_to_root or any(s.sort_order == new_order for s in siblings):
            new_order = at_end(siblings)

        restored = 0
        with tm.transaction(self.session):
            doc.parent_id = new_parent_id
            doc.path = new_path
            doc.sort_order = new_order
            doc.deleted_at = None
            doc.explicitly_deleted = False
            if doc.is_folder:
                restored = self._restore_descendants(doc.id, new_path)

        logger.info(f"恢复节点 {doc_id}: {new_path}，级联恢复后代 {restored} 个")
        return doc

    def _restore_descendants(self, root_id: int, root_path: str) -> int:
        count = 0
        stack: List[Tuple[int, str]] = [(root_id, root_path)]
        while stack:
            parent_id, parent_path = stack.pop()
            children = (
                self.session.query(Doc)
                .filter(
                    Doc.parent_id == parent_id,
                    Doc.deleted_at.isnot(None),
                    Doc.explicitly_deleted.is_(False),
                )
                .all()
            )
            for child in children:
                child.path = build_path(parent_path, child.slug)
                child.deleted_at = None
                count += 1
                if child.is_folder:
                    stack.append((child.id, child.path))
        return count
