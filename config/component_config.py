"""
组件定义接口 - 每个可安装组件声明自己的菜单、默认参数、表结构与迁移

新组件实现 ComponentConfig 并注册到 component_configs 即可被安装脚本使用。
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Tuple

from sqlalchemy import (
    Column, DateTime, ForeignKey, Integer, MetaData, String, Table, Text, func
)
from sqlalchemy.engine import Connection

from database.types import MenuItem
from lifecycle.migrations import (
    Migration, add_column_if_missing, add_index_if_missing
)


class ComponentConfig(ABC):
    """组件定义抽象基类

    Attributes:
        name: 组件命名空间，也是表前缀与菜单 page_identifier 前缀。
        version: 组件当前版本，迁移执行完毕后应达到该版本。
        baseline_version: define_tables 所描述的基线表结构对应的版本。
        dependencies: 依赖的其他组件，``(名称, 最低版本或 None)``。
    """

    name: str = ""
    version: str = "1.0.0"
    baseline_version: str = "1.0.0"
    dependencies: List[Tuple[str, Optional[str]]] = []

    @abstractmethod
    def get_menu_section(self) -> str:
        """获取菜单分组标题"""
        pass

    @abstractmethod
    def get_menu_items(self) -> List[MenuItem]:
        """获取菜单项（顶级菜单，每项最多一层子菜单）"""
        pass

    @abstractmethod
    def get_default_parameters(self) -> List[Dict[str, Any]]:
        """获取安装时写入的默认参数"""
        pass

    def define_tables(self, metadata: MetaData) -> None:
        """在 metadata 上声明组件的业务表（基线结构），默认没有业务表"""
        pass

    def get_migrations(self) -> List[Migration]:
        """获取基线之后的迁移列表"""
        return []


def _widgets_add_color(connection: Connection) -> None:
    add_column_if_missing(connection, "widgets_items", "color",
                          "VARCHAR(50) NULL")
    add_index_if_missing(connection, "widgets_items",
                         "idx_widgets_items_color", ["color"])


class WidgetsComponentConfig(ComponentConfig):
    """示例组件：widgets"""

    name = "widgets"
    version = "1.1.0"
    baseline_version = "1.0.0"

    def get_menu_section(self) -> str:
        return "Widgets"

    def get_menu_items(self) -> List[MenuItem]:
        return [
            MenuItem(title="Widgets Dashboard", page="dashboard",
                     path="index.php", icon="dashboard"),
            MenuItem(title="All Widgets", page="items",
                     path="items/index.php", icon="widgets",
                     children=[
                         MenuItem(title="Create Widget", page="items_create",
                                  path="items/create.php", icon="add"),
                     ]),
            MenuItem(title="Settings", page="settings",
                     path="settings/index.php", icon="settings",
                     children=[
                         MenuItem(title="Parameters", page="settings_parameters",
                                  path="settings/parameters.php", icon="tune"),
                     ]),
        ]

    def get_default_parameters(self) -> List[Dict[str, Any]]:
        return []

    def define_tables(self, metadata: MetaData) -> None:
        Table(
            "widgets_items", metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("name", String(100), nullable=False),
            Column("description", Text),
            Column("created_at", DateTime, server_default=func.now()),
            extend_existing=True,
        )
        Table(
            "widgets_item_tags", metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("item_id", Integer, ForeignKey("widgets_items.id"),
                   nullable=False),
            Column("tag", String(50), nullable=False),
            extend_existing=True,
        )

    def get_migrations(self) -> List[Migration]:
        return [
            Migration("1.1.0", _widgets_add_color,
                      "Add colour column and index to widgets_items"),
        ]


# 可安装组件注册表（新组件在此注册）
component_configs: Dict[str, ComponentConfig] = {
    "widgets": WidgetsComponentConfig(),
}


def get_component_config(name: str) -> ComponentConfig:
    """按名称获取组件定义

    Raises:
        KeyError: 组件未注册。
    """
    if name not in component_configs:
        raise KeyError(f"Unknown component: {name}")
    return component_configs[name]
