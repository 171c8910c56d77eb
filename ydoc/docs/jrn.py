"""JRN（资源标识）构建

格式:
    jrn:<workspace>:docs:folder/<slug>
    jrn:<workspace>:docs:document/<slug>
    jrn:<workspace>:docs:article/<归一化标题>    （按标题搜索时使用的前缀）

使用示例:
    >>> folder_jrn("guides-1700000000000")
    'jrn:/global:docs:folder/guides-1700000000000'
"""

from typing import Union

from ydoc.utils import normalize_title

from .enums import DocType

JRN_SCHEME = "jrn:"
DEFAULT_WORKSPACE = "/global"

def _docs_jrn(kind: str, name: str, workspace: str) -> str:
    return f"{JRN_SCHEME}{workspace}:docs:{kind}/{name}"

def folder_jrn(slug: str, workspace: str = DEFAULT_WORKSPACE) -> str:
    return _docs_jrn("folder", slug, workspace)

def document_jrn(slug: str, workspace: str = DEFAULT_WORKSPACE) -> str:
    return _docs_jrn("document", slug, workspace)

def article_jrn_prefix(title: str, workspace: str = DEFAULT_WORKSPACE) -> str:
    """按标题搜索使用的 JRN 前缀"""
    return _docs_jrn("article", normalize_title(title), workspace)

def jrn_for(doc_type: Union[DocType, str], slug: str, workspace: str = DEFAULT_WORKSPACE) -> str:
    """根据节点类型推导 JRN"""
    if DocType(doc_type) == DocType.FOLDER:
        return folder_jrn(slug, workspace)
    return document_jrn(slug, workspace)


def last_segment(jrn: str) -> str:
    """JRN 最后一个 ":" 之后的部分（迁移时用作标题兜底）"""
    return jrn.split(":")[-1]
