"""
文档存储模块 - Schema 定义
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import DocType


class DocCreate(BaseModel):
    """创建节点请求

    slug / jrn / path / sort_order 缺省时自动推导。
    """
    doc_type: DocType = Field(DocType.DOCUMENT, description="节点类型")
    space_id: Optional[int] = Field(None, description="所属空间ID")
    parent_id: Optional[int] = Field(None, description="父节点ID，为空表示根级")
    jrn: Optional[str] = Field(None, description="资源标识")
    slug: Optional[str] = Field(None, description="URL 短名")
    path: Optional[str] = Field(None, description="物化路径")
    sort_order: Optional[float] = Field(None, description="排序序号")
    content: str = Field("", description="内容")
    content_type: Optional[str] = Field(None, description="内容类型")
    content_metadata: Optional[Dict[str, Any]] = Field(None, description="内容元数据（含 title）")
    source: Optional[Dict[str, Any]] = Field(None, description="来源信息（含 integrationId）")
    source_metadata: Optional[Dict[str, Any]] = Field(None, description="来源元数据（含 path）")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "doc_type": "folder",
                "space_id": 1,
                "parent_id": None,
                "content_metadata": {"title": "Guides"},
            }
        }
    )


class DocUpdate(BaseModel):
    """内容更新请求

    按 jrn 定位节点，version 为写入后的版本号。
    只更新显式提供的内容字段，层级字段不在此处修改。
    """
    jrn: str = Field(..., description="资源标识")
    version: int = Field(..., ge=1, description="版本号")
    content: Optional[str] = Field(None, description="内容")
    content_type: Optional[str] = Field(None, description="内容类型")
    content_metadata: Optional[Dict[str, Any]] = Field(None, description="内容元数据")
    source: Optional[Dict[str, Any]] = Field(None, description="来源信息")
    source_metadata: Optional[Dict[str, Any]] = Field(None, description="来源元数据")

    def content_fields(self) -> Dict[str, Any]:
        """显式提供的内容字段（不含 jrn / version）"""
        return self.model_dump(exclude_unset=True, exclude={"jrn", "version"})


class DocResponse(BaseModel):
    """节点响应"""
    id: int = Field(..., description="节点ID")
    jrn: str = Field(..., description="资源标识")
    slug: Optional[str] = Field(None, description="URL 短名")
    path: Optional[str] = Field(None, description="物化路径")
    doc_type: DocType = Field(..., description="节点类型")
    space_id: Optional[int] = Field(None, description="所属空间ID")
    parent_id: Optional[int] = Field(None, description="父节点ID")
    sort_order: float = Field(0.0, description="排序序号")
    version: int = Field(1, description="版本号")
    title: Optional[str] = Field(None, description="标题")
    content_type: Optional[str] = Field(None, description="内容类型")
    deleted_at: Optional[datetime] = Field(None, description="删除时间")
    updated_at: Optional[datetime] = Field(None, description="更新时间")

    model_config = ConfigDict(from_attributes=True)
