"""业务异常类定义

定义文档存储层使用的异常类体系。

异常层次:
    BusinessException
    ├── ResourceNotFoundException (404)
    │   ├── DocNotFoundException
    │   └── ParentNotFoundException
    ├── ResourceConflictException (409)
    ├── InvalidMoveException (400)
    │   ├── SelfMoveException
    │   ├── CyclicMoveException
    │   ├── TargetNotFolderException
    │   └── TargetNotFoundException
    │       └── TargetDeletedException
    └── ReferenceNotInScopeException (400)
        ├── ReferenceNotSiblingException
        └── ReferenceNotInTargetFolderException

版本冲突不是异常：严格版本更新返回 CONFLICT 哨兵值，见 ydoc.docs.concurrency。
"""

import copy
from typing import Optional, List, Any, Dict, Union
from fastapi import status
from enum import Enum


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"
    OPERATION_FAILED = "OPERATION_FAILED"

    # ==================== 资源相关 (404) ====================
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    DOC_NOT_FOUND = "DOC_NOT_FOUND"
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"

    # ==================== 冲突相关 (409) ====================
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # ==================== 树操作相关 (400) ====================
    INVALID_MOVE = "INVALID_MOVE"
    SELF_MOVE = "SELF_MOVE"
    CYCLIC_MOVE = "CYCLIC_MOVE"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    TARGET_DELETED = "TARGET_DELETED"
    TARGET_NOT_FOLDER = "TARGET_NOT_FOLDER"
    REFERENCE_NOT_IN_SCOPE = "REFERENCE_NOT_IN_SCOPE"
    REFERENCE_NOT_SIBLING = "REFERENCE_NOT_SIBLING"
    REFERENCE_NOT_IN_TARGET_FOLDER = "REFERENCE_NOT_IN_TARGET_FOLDER"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    属性:
        message: 错误消息（面向用户）
        code: 错误代码（用于程序判断，支持 ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息

    使用示例:
        raise BusinessException("操作失败", code=ErrorCode.OPERATION_FAILED)

        raise BusinessException(
            message="移动失败",
            code=ErrorCode.INVALID_MOVE,
            doc_id=12,
        )
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.BUSINESS_ERROR,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            # 返回深拷贝，避免调用方修改返回值反向污染异常对象内部状态
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在异常"""

    def __init__(
        self,
        message: str = "资源不存在",
        code: ErrorCodeType = ErrorCode.RESOURCE_NOT_FOUND,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            **extra
        )


class ResourceConflictException(BusinessException):
    """资源冲突异常"""

    def __init__(
        self,
        message: str = "资源冲突",
        code: ErrorCodeType = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
            **extra
        )


# ==================== 文档异常 ====================

class DocNotFoundException(ResourceNotFoundException):
    """文档/文件夹不存在"""

    def __init__(self, doc_id: Any = None, message: str = None, **extra: Any):
        self.doc_id = doc_id
        super().__init__(
            message=message or f"Document not found: {doc_id}",
            code=ErrorCode.DOC_NOT_FOUND,
            doc_id=doc_id,
            **extra
        )


class ParentNotFoundException(ResourceNotFoundException):
    """父文件夹不存在（仅在严格父节点策略下抛出）"""

    def __init__(self, parent_id: Any = None, **extra: Any):
        self.parent_id = parent_id
        super().__init__(
            message=f"Parent folder not found: {parent_id}",
            code=ErrorCode.PARENT_NOT_FOUND,
            parent_id=parent_id,
            **extra
        )


class InvalidMoveException(BusinessException):
    """非法移动基类"""

    default_message = "Invalid move"
    default_code: ErrorCodeType = ErrorCode.INVALID_MOVE

    def __init__(self, message: str = None, **extra: Any):
        super().__init__(
            message=message or self.default_message,
            code=self.default_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            **extra
        )


class SelfMoveException(InvalidMoveException):
    """移动到自身"""
    default_message = "Cannot move item to itself"
    default_code = ErrorCode.SELF_MOVE


class CyclicMoveException(InvalidMoveException):
    """文件夹移动到自己的后代下"""
    default_message = "Cannot move folder to its descendant"
    default_code = ErrorCode.CYCLIC_MOVE


class TargetNotFolderException(InvalidMoveException):
    """目标不是文件夹"""
    default_message = "Target must be a folder"
    default_code = ErrorCode.TARGET_NOT_FOLDER


class TargetNotFoundException(InvalidMoveException):
    """目标文件夹不存在"""
    default_message = "Target folder not found or has been deleted"
    default_code = ErrorCode.TARGET_NOT_FOUND


class TargetDeletedException(TargetNotFoundException):
    """目标文件夹已被软删除"""
    default_code = ErrorCode.TARGET_DELETED


class ReferenceNotInScopeException(BusinessException):
    """参照节点不在操作范围内"""

    default_code: ErrorCodeType = ErrorCode.REFERENCE_NOT_IN_SCOPE

    def __init__(self, reference_id: Any = None, message: str = None, **extra: Any):
        self.reference_id = reference_id
        super().__init__(
            message=message or self._format_message(reference_id),
            code=self.default_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            reference_id=reference_id,
            **extra
        )

    @staticmethod
    def _format_message(reference_id: Any) -> str:
        return f"Reference document {reference_id} is not in scope"


class ReferenceNotSiblingException(ReferenceNotInScopeException):
    """参照节点不是兄弟节点（同级排序）"""
    default_code = ErrorCode.REFERENCE_NOT_SIBLING

    @staticmethod
    def _format_message(reference_id: Any) -> str:
        return f"Reference document {reference_id} is not a sibling"


class ReferenceNotInTargetFolderException(ReferenceNotInScopeException):
    """参照节点不在目标文件夹中（移动）"""
    default_code = ErrorCode.REFERENCE_NOT_IN_TARGET_FOLDER

    @staticmethod
    def _format_message(reference_id: Any) -> str:
        return f"Reference document {reference_id} is not in target folder"

