"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 内存数据库引擎
- 临时文件 / 示例 YAML 配置
- 绑定到内存数据库的 DocStore
"""

import os
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        if os.path.dirname(filepath):
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


@pytest.fixture
def sample_yaml_config(temp_file):
    """创建示例 YAML 配置文件"""
    yaml_content = """
database:
  url: "sqlite:///:memory:"
  pool_size: 3

logging:
  level: "DEBUG"
  file_path: "logs/test.log"
  file_max_bytes: "1MB"

docs:
  jrn_workspace: "/acme"
  strict_parent: true
"""
    return temp_file("config/settings.yaml", yaml_content)


# ==================== 数据库 Fixtures ====================

@pytest.fixture
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 允许跨线程访问（check_same_thread=False）
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def doc_session(memory_engine):
    """建表并返回绑定内存数据库的 scoped_session"""
    from ydoc.orm import Base, CoreModel
    import ydoc.docs  # noqa: F401  注册 Doc 模型

    Base.metadata.create_all(bind=memory_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    session_scope = scoped_session(SessionLocal)
    CoreModel.query = session_scope.query_property()
    yield session_scope
    session_scope.remove()


@pytest.fixture
def store(doc_session):
    """绑定内存数据库的 DocStore"""
    from ydoc.docs import DocStore

    return DocStore(doc_session())
