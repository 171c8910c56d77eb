"""异常模块

使用示例:
    from ydoc.exceptions import DocNotFoundException, CyclicMoveException

    try:
        store.move(folder_id, child_id)
    except InvalidMoveException as e:
        return e.to_dict()
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    ResourceNotFoundException,
    ResourceConflictException,
    DocNotFoundException,
    ParentNotFoundException,
    InvalidMoveException,
    SelfMoveException,
    CyclicMoveException,
    TargetNotFolderException,
    TargetNotFoundException,
    TargetDeletedException,
    ReferenceNotInScopeException,
    ReferenceNotSiblingException,
    ReferenceNotInTargetFolderException,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "BusinessException",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "DocNotFoundException",
    "ParentNotFoundException",
    "InvalidMoveException",
    "SelfMoveException",
    "CyclicMoveException",
    "TargetNotFolderException",
    "TargetNotFoundException",
    "TargetDeletedException",
    "ReferenceNotInScopeException",
    "ReferenceNotSiblingException",
    "ReferenceNotInTargetFolderException",
]
