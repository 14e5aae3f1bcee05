"""SQLAlchemy 模型与表定义。

本模块定义两类表：
- 菜单系统共享表（``menu_system_menus``、``menu_system_icons``），使用声明式 ORM。
  这两张表属于独立的 menu_system 组件，其他组件只把它们当作可选依赖。
- 组件自有表（``{component}_config``、``{component}_parameters``），表名随组件
  命名空间变化，因此使用 Core ``Table`` 按组件动态构建。
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float,
    ForeignKey, MetaData, Table, UniqueConstraint
)
from sqlalchemy.orm import declarative_base

# 菜单系统的 declarative base，与组件表的 MetaData 相互独立，
# 这样 create_tables() 不会顺带创建菜单表
MenuBase = declarative_base()
MenuBase.__allow_unmapped__ = True

COMPONENT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

MENU_TABLE = "menu_system_menus"
ICON_TABLE = "menu_system_icons"


def validate_component_name(component: str) -> str:
    """校验组件命名空间。

    组件名会被拼接进表名和菜单 page_identifier 前缀，只允许小写字母、
    数字和下划线，且以字母开头。

    Raises:
        ValueError: 名称不合法。
    """
    if not component or not COMPONENT_NAME_PATTERN.match(component):
        raise ValueError(f"Invalid component name: {component!r}")
    return component


def namespaces_overlap(a: str, b: str) -> bool:
    """两个组件命名空间是否相互包含，如 ``shop`` 与 ``shop_extra``。"""
    return a != b and (a.startswith(f"{b}_") or b.startswith(f"{a}_"))


def in_namespace(component: str, name: str,
                 nested: Sequence[str] = ()) -> bool:
    """name（表名或 page_identifier）是否属于 component。

    nested 是名称以 ``{component}_`` 开头的其他组件，它们的表和菜单
    不属于 component。
    """
    if not name.startswith(f"{component}_"):
        return False
    return not any(name.startswith(f"{other}_") for other in nested)


class MenuLink(MenuBase):
    """后台菜单表模型。

    菜单树最多两层：分组标题（is_section_heading）→ 顶级菜单 → 子菜单。
    page_identifier 以 ``{component}_`` 为前缀，卸载时按前缀批量删除。

    Attributes:
        id: 主键，自增整数。
        title: 显示标题。
        url: 目标地址，分组标题为 ``#``。
        icon: 图标名称（可选）。
        icon_svg_path: 图标SVG路径，从 menu_system_icons 解析（可选）。
        page_identifier: 页面标识，组件内唯一。
        parent_id: 父菜单ID（子菜单才有）。
        section_heading_id: 所属分组标题ID。
        menu_order: 排序值。
        is_active: 是否启用。
        menu_type: 菜单类型，组件菜单固定为 admin。
        is_section_heading: 是否为分组标题（不可点击）。
    """
    __tablename__ = MENU_TABLE

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    title: str = Column(String(255), nullable=False)
    url: str = Column(String(500), nullable=False, default="#")
    icon: Optional[str] = Column(String(100))
    icon_svg_path: Optional[str] = Column(Text)
    page_identifier: Optional[str] = Column(String(150), index=True)
    parent_id: Optional[int] = Column(Integer, ForeignKey(f"{MENU_TABLE}.id"))
    section_heading_id: Optional[int] = Column(
        Integer, ForeignKey(f"{MENU_TABLE}.id")
    )
    menu_order: int = Column(Integer, default=0)
    is_active: bool = Column(Boolean, default=True)
    menu_type: str = Column(String(20), default="admin")
    is_section_heading: bool = Column(Boolean, default=False)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)


class MenuIcon(MenuBase):
    """菜单图标字典表模型。

    Attributes:
        id: 主键。
        name: 图标名称，唯一。
        svg_path: SVG path 数据。
    """
    __tablename__ = ICON_TABLE

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    name: str = Column(String(100), nullable=False, unique=True)
    svg_path: str = Column(Text, nullable=False)


@dataclass
class ComponentTables:
    """一个组件的核心表集合"""
    metadata: MetaData
    config: Table
    parameters: Table


def build_component_tables(component: str,
                           metadata: Optional[MetaData] = None
                           ) -> ComponentTables:
    """按组件命名空间构建核心表定义。

    Args:
        component: 组件名称。
        metadata: 可选的 MetaData，组件声明的业务表可以共用同一个 MetaData，
            以便 ``create_all`` 按外键顺序建表。

    Returns:
        ComponentTables，包含 ``{component}_config`` 与
        ``{component}_parameters`` 两张表。
    """
    validate_component_name(component)
    metadata = metadata if metadata is not None else MetaData()

    config = Table(
        f"{component}_config", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("config_key", String(100), nullable=False, unique=True),
        Column("config_value", Text),
        Column("updated_at", DateTime, default=datetime.utcnow,
               onupdate=datetime.utcnow),
        extend_existing=True,
    )

    parameters = Table(
        f"{component}_parameters", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("section", String(100), nullable=False),
        Column("parameter_name", String(150), nullable=False),
        Column("value", Text),
        Column("value_type", String(10), nullable=False, default="text"),
        Column("description", Text),
        Column("min_range", Float),
        Column("max_range", Float),
        Column("created_at", DateTime, default=datetime.utcnow),
        Column("updated_at", DateTime, default=datetime.utcnow,
               onupdate=datetime.utcnow),
        UniqueConstraint("section", "parameter_name",
                         name=f"uq_{component}_parameters_section_name"),
        extend_existing=True,
    )

    return ComponentTables(metadata=metadata, config=config,
                           parameters=parameters)
