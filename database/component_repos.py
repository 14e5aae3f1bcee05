"""组件仓库 —— 组件配置表与已安装组件注册信息。

``{component}_config`` 是一张 config_key/config_value 表，保存组件的
``version``（迁移进度标记）与 ``installed_at`` 等元数据。
组件是否已安装、当前版本都从这张表推导，不另设全局注册表。
"""
from datetime import datetime
from typing import Optional, List, Dict

from sqlalchemy import select

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import (
    COMPONENT_NAME_PATTERN, build_component_tables, in_namespace,
    namespaces_overlap, validate_component_name
)
from .types import ComponentInfo

VERSION_KEY = "version"
INSTALLED_AT_KEY = "installed_at"


class ComponentConfigRepository(BaseCRUD):
    """组件配置表 仓库。

    Attributes:
        component: 组件名称。
        tables: 组件核心表定义（config 与 parameters）。
    """

    def __init__(self, conn: DatabaseConnection, component: str) -> None:
        super().__init__(conn)
        self.component = component
        self.tables = build_component_tables(component)
        self.table = self.tables.config

    def create_core_tables(self) -> None:
        """创建 ``{component}_config`` 与 ``{component}_parameters``（幂等）。"""
        self.conn.create_tables(self.tables.metadata)

    def exists(self) -> bool:
        """配置表是否存在。"""
        return self._table_exists(self.table.name)

    def get_value(self, key: str,
                  default: Optional[str] = None) -> Optional[str]:
        """读取配置值，配置表或键不存在时返回 default。"""
        if not self.exists():
            return default
        t = self.table
        with self._get_session() as session:
            row = session.execute(
                select(t.c.config_value).where(t.c.config_key == key)
            ).first()
        return row.config_value if row is not None else default

    def set_value(self, key: str, value: str) -> None:
        """写入配置值（存在则更新）。"""
        t = self.table
        now = datetime.utcnow()
        with self._get_session() as session:
            existing = session.execute(
                select(t.c.id).where(t.c.config_key == key)
            ).first()
            if existing:
                session.execute(
                    t.update().where(t.c.id == existing.id).values(
                        config_value=value, updated_at=now
                    )
                )
            else:
                session.execute(t.insert().values(
                    config_key=key, config_value=value, updated_at=now
                ))
            session.commit()

    def all_values(self) -> Dict[str, Optional[str]]:
        """读取全部配置键值对。"""
        if not self.exists():
            return {}
        t = self.table
        with self._get_session() as session:
            rows = session.execute(
                select(t.c.config_key, t.c.config_value)
            ).all()
        return {row.config_key: row.config_value for row in rows}

    def get_version(self) -> Optional[str]:
        """当前记录的组件版本，未安装返回 None。"""
        return self.get_value(VERSION_KEY)

    def set_version(self, version: str) -> None:
        """持久化组件版本。"""
        self.set_value(VERSION_KEY, version)


class ComponentRegistry(BaseCRUD):
    """已安装组件 注册信息。

    组件被视为已安装，当且仅当其配置表存在且记录了 version。
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        super().__init__(conn)

    def is_installed(self, component: str) -> bool:
        validate_component_name(component)
        return ComponentConfigRepository(
            self.conn, component
        ).get_version() is not None

    def get_component(self, component: str) -> Optional[ComponentInfo]:
        """获取组件注册信息。

        Returns:
            ComponentInfo，未安装返回 None。tables 不含嵌套在该命名空间下
            的其他组件的表。
        """
        validate_component_name(component)
        repo = ComponentConfigRepository(self.conn, component)
        values = repo.all_values()
        if VERSION_KEY not in values:
            return None
        nested = self.nested_components(component)
        return ComponentInfo(
            name=component,
            version=values.get(VERSION_KEY),
            installed_at=values.get(INSTALLED_AT_KEY),
            tables=[
                name for name in self.conn.list_tables(prefix=f"{component}_")
                if in_namespace(component, name, nested)
            ],
        )

    def installed_names(self) -> List[str]:
        """全部已安装组件的名称，按名称排序。"""
        names = []
        for table_name in self.conn.list_tables():
            if not table_name.endswith("_config"):
                continue
            name = table_name[:-len("_config")]
            if not COMPONENT_NAME_PATTERN.match(name):
                continue
            if "config_key" not in self.conn.get_column_names(table_name):
                continue
            if self.is_installed(name):
                names.append(name)
        return names

    def list_installed(self) -> List[ComponentInfo]:
        """列出全部已安装组件，按名称排序。"""
        components = []
        for name in self.installed_names():
            info = self.get_component(name)
            if info is not None:
                components.append(info)
        return components

    def nested_components(self, component: str) -> List[str]:
        """名称以 ``{component}_`` 开头的已安装组件。"""
        return [
            name for name in self.installed_names()
            if name.startswith(f"{component}_")
        ]

    def conflicting_components(self, component: str) -> List[str]:
        """与 component 命名空间相互包含的已安装组件。"""
        validate_component_name(component)
        return [
            name for name in self.installed_names()
            if namespaces_overlap(component, name)
        ]
