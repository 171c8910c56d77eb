"""
文档存储模块 - 门面

DocStore 组合 DocDao / DocTreeMutator / DocConcurrencyGate / DocMigrationSweeper，
对上层（路由、导入流水线、编辑工具）提供统一的存储接口。本层不做权限校验，
调用方需要先完成鉴权。

使用示例:
    from ydoc.docs import init_doc_store, DocCreate, DocType

    store = init_doc_store(config_path="config/settings.yaml")
    folder = store.create(DocCreate(doc_type=DocType.FOLDER, space_id=1,
                                    content_metadata={"title": "Guides"}))
    tree = store.get_tree(space_id=1)
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from ydoc.config import AppSettings, DocStoreSettings, load_yaml_config
from ydoc.log import get_logger, setup_root_logger
from ydoc.orm import db_manager, init_database
from ydoc.orm.sortable import Position
from ydoc.orm.tree import build_tree_list

from .base import SessionLike
from .concurrency import DocConcurrencyGate, VersionConflict
from .dao import ALL, DocDao
from .enums import MoveDirection
from .migration import DocMigrationSweeper, SweepReport
from .models import Doc
from .schemas import DocCreate, DocResponse, DocUpdate
from .tree_mutator import DocTreeMutator

logger = get_logger("ydoc.docs.store")


class DocStore:
    """文档存储门面"""

    def __init__(self, session: Optional[SessionLike] = None, settings: Optional[DocStoreSettings] = None):
        self.settings = settings or DocStoreSettings()
        self.dao = DocDao(session, self.settings)
        self.mutator = DocTreeMutator(session, self.settings, dao=self.dao)
        self.gate = DocConcurrencyGate(session, self.settings, dao=self.dao)
        self.sweeper = DocMigrationSweeper(session, self.settings)

    # ==================== 读取 ====================

    def read_by_id(self, doc_id: int) -> Optional[Doc]:
        return self.dao.read_doc_by_id(doc_id)

    def read_by_jrn(self, jrn: str) -> Optional[Doc]:
        return self.dao.read_doc(jrn)

    def read_many_by_jrns(self, jrns: Iterable[str]) -> List[Doc]:
        return self.dao.read_docs_by_jrns(jrns)

    def list(
        self,
        starts_with_jrn: Optional[str] = None,
        include_root: bool = False,
        space_id: Optional[int] = None,
    ) -> List[Doc]:
        return self.dao.list_docs(starts_with_jrn, include_root, space_id)

    def search_by_title(self, title: str) -> List[Doc]:
        return self.dao.search_docs_by_title(title)

    def get_tree_content(self, space_id: int, parent_id: Any = ALL) -> List[Doc]:
        return self.dao.get_tree_content(space_id, parent_id)

    def get_trash_content(self, space_id: int) -> List[Doc]:
        return self.dao.get_trash_content(space_id)

    def get_max_sort_order(self, space_id: int, parent_id: Optional[int] = None) -> float:
        return self.dao.get_max_sort_order(space_id, parent_id)

    def has_deleted_children(self, space_id: int) -> bool:
        """回收站是否有内容"""
        return self.dao.has_deleted_docs(space_id)

    def find_by_exact_folder_name(self, space_id: int, parent_id: Optional[int], name: str) -> Optional[Doc]:
        return self.dao.find_folder_by_name(space_id, parent_id, name)

    def find_by_source_path(self, space_id: int, path: str, integration_id: Any = None) -> Optional[Doc]:
        return self.dao.find_doc_by_source_path(space_id, path, integration_id)

    def find_by_source_path_any_space(self, path: str, integration_id: Any = None) -> Optional[Doc]:
        return self.dao.find_doc_by_source_path_any_space(path, integration_id)

    def is_descendant_of(self, target_id: int, ancestor_id: int) -> bool:
        return self.dao.is_descendant_of(target_id, ancestor_id)

    def get_tree(self, space_id: int) -> List[Dict[str, Any]]:
        """空间内未删除节点组装成嵌套树（children 字段），同级按 sort_order 排序"""
        nodes = [
            DocResponse.model_validate(doc).model_dump()
            for doc in self.dao.get_tree_content(space_id)
        ]
        return build_tree_list(nodes, sort_key=lambda n: (n["sort_order"], n["id"]))

    # ==================== 变更 ====================

    def create(self, data: DocCreate) -> Doc:
        return self.mutator.create_doc(data)

    def update_doc(self, update: DocUpdate) -> Optional[Doc]:
        return self.gate.update_doc(update)

    def update_doc_if_version(self, update: DocUpdate, expected_version: int) -> Union[Doc, VersionConflict]:
        return self.gate.update_doc_if_version(update, expected_version)

    def soft_delete(self, doc_id: int) -> Doc:
        return self.mutator.soft_delete(doc_id)

    def restore(self, doc_id: int) -> Optional[Doc]:
        return self.mutator.restore(doc_id)

    def move(
        self,
        doc_id: int,
        new_parent_id: Optional[int] = None,
        reference_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> Doc:
        return self.mutator.move_doc(doc_id, new_parent_id, reference_id, position)

    def reorder_at(
        self,
        doc_id: int,
        reference_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> Doc:
        return self.mutator.reorder_at(doc_id, reference_id, position)

    def reorder(self, doc_id: int, direction: MoveDirection) -> Optional[Doc]:
        return self.mutator.reorder_doc(doc_id, direction)

    def rename_title_only(self, doc_id: int, title: str) -> Optional[Doc]:
        return self.mutator.rename_doc(doc_id, title)

    def delete(self, jrn: str) -> int:
        """物理删除（管理操作）"""
        return self.dao.delete_doc(jrn)

    def delete_all(self) -> int:
        return self.dao.delete_all_docs()

    # ==================== 数据修复 ====================

    def run_startup_migrations(self) -> Optional[SweepReport]:
        """按配置在启动时执行数据修复，未启用时返回 None"""
        if not self.settings.run_migrations_on_startup:
            logger.info("启动数据修复已禁用")
            return None
        report = self.sweeper.run()
        if report.ok:
            logger.info(f"启动数据修复完成，共修复 {report.total} 行")
        else:
            logger.warning(f"启动数据修复部分失败: {list(report.failures)}")
        return report


def init_doc_store(
    settings: Optional[AppSettings] = None,
    config_path: Optional[str] = None,
    setup_logging: bool = True,
) -> DocStore:
    """按配置初始化日志、数据库并返回 DocStore

    建表后执行一次启动数据修复（可通过 docs.run_migrations_on_startup 关闭）。

    Args:
        settings: 应用配置，不传则从 config_path 加载或使用默认值
        config_path: YAML 配置文件路径
        setup_logging: 是否按 logging 段配置根日志器
    """
    if settings is None:
        settings = load_yaml_config(config_path, AppSettings) if config_path else AppSettings()

    if setup_logging:
        setup_root_logger(config=settings.logging)

    init_database(config=settings.database, logging_config=settings.logging, create_tables=True)

    store = DocStore(db_manager.session_scope, settings.docs)
    store.run_startup_migrations()
    return store
