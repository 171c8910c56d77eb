"""日志模块

使用示例:
    from ydoc.log import setup_root_logger, get_logger

    setup_root_logger(level="INFO", log_file="logs/app.log")
    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    setup_sql_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    SQL_LOG_FORMAT,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "setup_sql_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "SQL_LOG_FORMAT",
    "logger",
    "get_logger",
]
