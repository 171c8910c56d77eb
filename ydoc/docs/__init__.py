"""文档存储模块

文件夹与文档组成的物化路径树：
- Doc: 节点模型（docs 表）
- DocDao: 查询
- DocTreeMutator: 创建、移动、排序、重命名、软删除、恢复
- DocConcurrencyGate: 版本检查的内容更新
- DocMigrationSweeper: 启动时数据修复
- DocStore: 以上组件的门面

使用示例:
    from ydoc.docs import DocStore, DocCreate, DocType, Position

    store = DocStore(session)
    folder = store.create(DocCreate(doc_type=DocType.FOLDER, space_id=1))
    doc = store.create(DocCreate(space_id=1, parent_id=folder.id))
    store.move(doc.id, None)
"""

from .enums import DocType, DeleteState, MoveDirection, Position
from .models import Doc
from .schemas import DocCreate, DocUpdate, DocResponse
from .jrn import (
    DEFAULT_WORKSPACE,
    folder_jrn,
    document_jrn,
    article_jrn_prefix,
    jrn_for,
)
from .dao import ALL, DocDao
from .tree_mutator import DocTreeMutator
from .concurrency import CONFLICT, VersionConflict, is_conflict, DocConcurrencyGate
from .migration import DocMigrationSweeper, SweepReport
from .store import DocStore, init_doc_store

__all__ = [
    "DocType",
    "DeleteState",
    "MoveDirection",
    "Position",
    "Doc",
    "DocCreate",
    "DocUpdate",
    "DocResponse",
    "DEFAULT_WORKSPACE",
    "folder_jrn",
    "document_jrn",
    "article_jrn_prefix",
    "jrn_for",
    "ALL",
    "DocDao",
    "DocTreeMutator",
    "CONFLICT",
    "VersionConflict",
    "is_conflict",
    "DocConcurrencyGate",
    "DocMigrationSweeper",
    "SweepReport",
    "DocStore",
    "init_doc_store",
]
