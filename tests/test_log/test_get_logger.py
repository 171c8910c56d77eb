"""日志工具测试"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from ydoc.config import LoggingSettings
from ydoc.log import MicrosecondFormatter, get_logger, setup_logger, setup_sql_logger


class TestGetLogger:
    """get_logger 名称推断测试"""

    def test_infer_module_name(self):
        assert get_logger().name == __name__

    def test_short_name_prefixed(self):
        assert get_logger("docs").name == "ydoc.docs"

    def test_dotted_name_kept(self):
        assert get_logger("sqlalchemy.engine").name == "sqlalchemy.engine"
        assert get_logger("ydoc.docs.tree").name == "ydoc.docs.tree"

    def test_root_package_name(self):
        assert get_logger("ydoc").name == "ydoc"


class TestSetupLogger:
    """setup_logger 测试"""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        self.names = []
        yield
        for name in self.names:
            target = logging.getLogger(name)
            for handler in target.handlers:
                handler.close()
            target.handlers.clear()
            target.setLevel(logging.NOTSET)
            target.propagate = True

    def test_rotating_file_handler(self, tmp_path):
        """测试提供 file_handler_options 时使用轮转文件处理器"""
        name = "ydoc.test.rotating"
        self.names.append(name)
        log_file = tmp_path / "logs" / "docs.log"

        target = setup_logger(
            name=name,
            level="DEBUG",
            log_file=str(log_file),
            console=False,
            file_handler_options={"maxBytes": 1024, "backupCount": 2},
        )
        target.info("写入日志")

        handler = target.handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        assert isinstance(handler.formatter, MicrosecondFormatter)
        assert log_file.exists()
        assert "写入日志" in log_file.read_text(encoding="utf-8")

    def test_level_and_console(self):
        name = "ydoc.test.console"
        self.names.append(name)

        target = setup_logger(name=name, level="warning")

        assert target.level == logging.WARNING
        assert len(target.handlers) == 1
        assert isinstance(target.handlers[0], logging.StreamHandler)

    def test_repeated_setup_replaces_handlers(self):
        name = "ydoc.test.repeat"
        self.names.append(name)

        setup_logger(name=name)
        target = setup_logger(name=name)

        assert len(target.handlers) == 1

    def test_sql_logger_disabled(self):
        assert setup_sql_logger(config=LoggingSettings(sql_log_enabled=False)) is None

    def test_sql_logger_from_config(self, tmp_path):
        self.names.append("sqlalchemy.engine")
        config = LoggingSettings(sql_log_enabled=True, sql_log_file_path=str(tmp_path / "sql.log"))

        sql_logger = setup_sql_logger(config=config)

        assert sql_logger.name == "sqlalchemy.engine"
        assert sql_logger.propagate is False
        assert isinstance(sql_logger.handlers[0], RotatingFileHandler)
