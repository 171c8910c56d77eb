"""
YDoc - 文档树存储库

提供文件夹/文档的物化路径树存储：创建、移动、排序、软删除与恢复、版本检查的内容更新，
以及日志、配置、ORM、事务等基础设施。
"""

from .version import __version__, __author__, __description__

# 导出日志模块
from .log import setup_root_logger, get_logger

# 导出配置模块
from .config import AppSettings, DatabaseSettings, LoggingSettings, DocStoreSettings, load_yaml_config

# 导出异常模块
from .exceptions import (
    ErrorCode,
    BusinessException,
    DocNotFoundException,
    InvalidMoveException,
    ReferenceNotInScopeException,
)

# 导出 ORM 模块
from .orm import (
    CoreModel,
    init_database,
    db_session_scope,
    transaction_manager,
)

# 导出文档存储模块
from .docs import (
    Doc,
    DocType,
    Position,
    DocCreate,
    DocUpdate,
    DocStore,
    CONFLICT,
    is_conflict,
    init_doc_store,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "setup_root_logger",
    "get_logger",
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "DocStoreSettings",
    "load_yaml_config",
    "ErrorCode",
    "BusinessException",
    "DocNotFoundException",
    "InvalidMoveException",
    "ReferenceNotInScopeException",
    "CoreModel",
    "init_database",
    "db_session_scope",
    "transaction_manager",
    "Doc",
    "DocType",
    "Position",
    "DocCreate",
    "DocUpdate",
    "DocStore",
    "CONFLICT",
    "is_conflict",
    "init_doc_store",
]
