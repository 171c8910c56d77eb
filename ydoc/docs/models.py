"""
文档存储模块 - 文档模型

文件夹与文档共用一张 docs 表，以 doc_type 区分，通过 parent_id + path（物化路径）组成树。

字段说明:
    - jrn: 全局唯一资源标识，缺省时由 doc_type + slug 推导
    - slug: URL 安全短名，带时间戳后缀，不做全局唯一约束
    - path: 物化路径（如 /parent-slug/child-slug），只由树操作写入
    - doc_type: folder / document
    - space_id: 所属空间，移动与排序都限定在同一空间内
    - parent_id: 父节点ID，为空表示根级
    - sort_order: 浮点分数索引（来自 SortFieldMixin）
    - version: 版本号，从 1 开始，每次内容更新递增
    - deleted_at / explicitly_deleted: 两级软删除标记
"""

from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ydoc.orm import CoreModel
from ydoc.orm.sortable import SortFieldMixin

from .enums import DeleteState, DocType


class Doc(CoreModel, SortFieldMixin):
    """文档 / 文件夹节点

    使用示例:
        from ydoc.docs import Doc, DocType

        folder = Doc.query.filter_by(jrn="jrn:/global:docs:folder/guides-1700000000000").first()
        if folder.doc_type == DocType.FOLDER and not folder.is_deleted:
            ...
    """
    __tablename__ = "docs"

    jrn: Mapped[str] = mapped_column(String(512), unique=True, nullable=False, comment="资源标识")
    slug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True, comment="URL 短名")
    path: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True, index=True, comment="物化路径")

    doc_type: Mapped[str] = mapped_column(
        String(20),
        default=DocType.DOCUMENT.value,
        nullable=False,
        comment="节点类型（folder/document）"
    )
    space_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True, comment="所属空间ID")
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True, comment="父节点ID")

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False, comment="版本号")
    explicitly_deleted: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="是否被直接删除（区别于级联删除）"
    )

    # ==================== 内容字段（本层不解释） ====================

    content: Mapped[str] = mapped_column(Text, default="", nullable=False, comment="内容")
    content_type: Mapped[str] = mapped_column(
        String(100),
        default="text/markdown",
        nullable=False,
        comment="内容类型"
    )
    content_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, comment="内容元数据")
    source: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, comment="来源信息")
    source_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, comment="来源元数据")

    def __repr__(self):
        return f"<Doc id={self.id} type={self.doc_type} path={self.path!r}>"

    @property
    def is_folder(self) -> bool:
        return self.doc_type == DocType.FOLDER.value

    @property
    def title(self) -> Optional[str]:
        """content_metadata 中的标题"""
        return (self.content_metadata or {}).get("title")

    @property
    def delete_state(self) -> DeleteState:
        if self.deleted_at is None:
            return DeleteState.ACTIVE
        if self.explicitly_deleted:
            return DeleteState.EXPLICITLY_DELETED
        return DeleteState.CASCADE_DELETED
