"""数据库连接与基础设施管理。

本模块负责数据库的底层基础设施，包括：
- 数据库引擎创建
- 会话（Session）管理
- 表创建与表结构探测（替代 ``SHOW TABLES LIKE`` / ``SHOW COLUMNS LIKE``）
- 原始SQL执行

本模块不包含任何组件逻辑，仅提供数据库基础操作。
"""
import os
from typing import Optional, Any, List

from sqlalchemy import MetaData, create_engine, inspect, text
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.orm import sessionmaker, Session

from .models import MenuBase
from config.settings import settings


class DatabaseConnection:
    """数据库连接管理器。

    负责数据库引擎的创建和会话管理。所有生命周期操作都是同步的单请求流程，
    因此对 SQLite、MySQL、PostgreSQL 均使用同步引擎。

    Attributes:
        database_url: 数据库连接URL。
        engine: SQLAlchemy引擎对象。
        SessionLocal: 会话工厂。

    Example:
        ```python
        conn = DatabaseConnection("sqlite:///data/admin.db")
        if conn.table_exists("menu_system_menus"):
            ...
        ```
    """

    def __init__(self, database_url: Optional[str] = None) -> None:
        """初始化数据库连接。

        Args:
            database_url: 数据库连接URL，如果为None则使用settings中的配置。
        """
        self.database_url: str = database_url or settings.database_url

        if self.database_url.startswith("sqlite"):
            db_path = make_url(self.database_url).database
            if db_path and db_path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(db_path)),
                            exist_ok=True)
            self.engine = create_engine(
                self.database_url,
                echo=False,
                connect_args={"check_same_thread": False}
            )
        else:
            self.engine = create_engine(
                self.database_url, echo=False, pool_pre_ping=True
            )

        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False
        )

    def create_menu_tables(self) -> None:
        """创建菜单系统共享表（幂等操作）。

        正常情况下由 menu_system 组件的安装流程调用。
        """
        MenuBase.metadata.create_all(self.engine)

    def create_tables(self, metadata: MetaData) -> None:
        """按外键顺序创建 metadata 中的所有表，已存在的表跳过。"""
        metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """获取数据库会话。"""
        return self.SessionLocal()

    def begin(self) -> Connection:
        """开启一个事务性连接（``with conn.begin() as connection:``）。

        块内正常结束时提交，抛出异常时回滚。
        """
        return self.engine.begin()

    def table_exists(self, table_name: str) -> bool:
        """检查表是否存在。"""
        return inspect(self.engine).has_table(table_name)

    def list_tables(self, prefix: Optional[str] = None) -> List[str]:
        """列出数据库中的表名，可按前缀过滤。"""
        names = inspect(self.engine).get_table_names()
        if prefix:
            names = [n for n in names if n.startswith(prefix)]
        return sorted(names)

    def get_column_names(self, table_name: str) -> List[str]:
        """获取表的列名，表不存在时返回空列表。"""
        if not self.table_exists(table_name):
            return []
        return [c["name"] for c in inspect(self.engine).get_columns(table_name)]

    def get_index_names(self, table_name: str) -> List[str]:
        """获取表的索引名，表不存在时返回空列表。"""
        if not self.table_exists(table_name):
            return []
        return [
            i["name"] for i in inspect(self.engine).get_indexes(table_name)
            if i.get("name")
        ]

    def ping(self) -> None:
        """执行一次轻量查询以确认连接可用。

        Raises:
            sqlalchemy.exc.SQLAlchemyError: 数据库不可达。
        """
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def execute_raw_sql(self, sql: str, params: Optional[dict] = None) -> Any:
        """执行原始SQL语句。

        注意：此方法应谨慎使用，建议优先使用ORM方法。
        如果必须使用原始SQL，请确保SQL语句安全，避免SQL注入。

        Args:
            sql: SQL语句字符串。
            params: SQL参数字典（可选）。

        Returns:
            SQL执行结果。
        """
        with self.get_session() as session:
            result = session.execute(text(sql), params or {})
            session.commit()
            return result

    def close(self) -> None:
        """关闭数据库连接，释放引擎资源。

        释放连接池中的所有连接。调用后不应再使用此连接实例。
        """
        if self.engine is not None:
            self.engine.dispose()
