"""数据库管理器 —— 统一门面（Facade）。

DatabaseManager 是 database 模块的统一入口，组合了所有子仓库：

1. **共享仓库**：``db.menus``（菜单链接）、``db.registry``（已安装组件）。
2. **按组件构建的仓库**：``db.parameters("widgets")``、
   ``db.component_config("widgets")``，表名随组件命名空间变化。
3. **便捷方法**：``get_parameter()`` / ``set_parameter()`` 等扁平方法，
   适合安装脚本与后台页面直接调用。
"""
from typing import Optional, List, Any

from sqlalchemy.orm import Session

from .connection import DatabaseConnection
from .menu_repos import MenuRepository
from .parameter_repos import ParameterRepository
from .component_repos import ComponentConfigRepository, ComponentRegistry
from .types import ParameterRecord, ComponentInfo


class DatabaseManager:
    """数据库管理器 —— 统一门面。

    Attributes:
        conn: 数据库连接管理器。
        menus: 菜单仓库。
        registry: 已安装组件注册信息。

    Example::

        db = DatabaseManager("sqlite:///data/admin.db")
        db.create_menu_tables()

        # 按组件访问参数
        db.set_parameter("widgets", "Display", "color", "blue")
        db.get_parameter("widgets", "Display", "color", "red")
    """

    def __init__(self, database_url: Optional[str] = None,
                 menu_start_order: Optional[int] = None) -> None:
        """初始化数据库管理器。

        Args:
            database_url: 数据库连接URL。如果为None则使用settings配置。
            menu_start_order: 菜单排序起始值，默认取 settings.menu_start_order。
        """
        self.conn = DatabaseConnection(database_url)

        self.menus = MenuRepository(self.conn, start_order=menu_start_order)
        self.registry = ComponentRegistry(self.conn)

    # ================================================================
    # 基础设施方法
    # ================================================================

    def create_menu_tables(self) -> None:
        """创建菜单系统共享表（幂等操作）。"""
        self.conn.create_menu_tables()

    def get_session(self) -> Session:
        """获取数据库会话。"""
        return self.conn.get_session()

    @property
    def database_url(self) -> str:
        """数据库连接URL。"""
        return self.conn.database_url

    @property
    def engine(self):
        """SQLAlchemy 引擎对象。"""
        return self.conn.engine

    def execute_raw_sql(self, sql: str,
                        params: Optional[dict] = None) -> Any:
        """执行原始 SQL 语句。"""
        return self.conn.execute_raw_sql(sql, params)

    def close(self) -> None:
        """关闭数据库连接，释放所有资源。"""
        self.conn.close()

    # ================================================================
    # 按组件构建的仓库
    # ================================================================

    def parameters(self, component: str) -> ParameterRepository:
        """获取组件的参数仓库。"""
        return ParameterRepository(self.conn, component)

    def component_config(self, component: str) -> ComponentConfigRepository:
        """获取组件的配置表仓库。"""
        return ComponentConfigRepository(self.conn, component)

    # ================================================================
    # 便捷方法
    # ================================================================

    def get_parameter(self, component: str, section: str,
                      parameter_name: str,
                      default: Optional[str] = None) -> Optional[str]:
        """读取组件参数，不存在返回 default。"""
        return self.parameters(component).get_parameter(
            section, parameter_name, default
        )

    def set_parameter(self, component: str, section: str,
                      parameter_name: str, value: Any,
                      description: Optional[str] = None) -> bool:
        """写入组件参数（upsert）。"""
        return self.parameters(component).set_parameter(
            section, parameter_name, value, description=description
        )

    def list_parameters(self, component: str,
                        section: Optional[str] = None
                        ) -> List[ParameterRecord]:
        """按 section、parameter_name 排序列出组件参数。"""
        return self.parameters(component).list_parameters(section=section)

    def list_components(self) -> List[ComponentInfo]:
        """列出全部已安装组件。"""
        return self.registry.list_installed()
