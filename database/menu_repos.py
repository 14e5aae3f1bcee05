"""菜单仓库 —— 组件菜单链接的安装与移除。

菜单表 ``menu_system_menus`` 由独立的 menu_system 组件拥有。其他组件在安装时
向其中写入一棵以分组标题为根的菜单树，卸载时按 page_identifier 前缀整体删除。
菜单系统未安装时：创建返回软失败，删除视为成功的空操作。
"""
from typing import Optional, List, Sequence

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from config.settings import settings
from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import (
    MenuLink, MenuIcon, MENU_TABLE, ICON_TABLE, validate_component_name
)
from .types import MenuItem, MenuLinkResult, MenuRemovalResult


class MenuRepository(BaseCRUD):
    """菜单链接 仓库。

    page_identifier 统一为 ``{component}_{page}``，分组标题为
    ``{component}_section``。按前缀查询或删除时，exclude 中的组件
    （名称以 ``{component}_`` 开头的其他组件）不会被匹配。
    """

    def __init__(self, conn: DatabaseConnection,
                 start_order: Optional[int] = None) -> None:
        super().__init__(conn)
        self.start_order = (
            start_order if start_order is not None
            else settings.menu_start_order
        )

    def menu_system_installed(self) -> bool:
        """菜单系统（menu_system_menus 表）是否存在。"""
        return self._table_exists(MENU_TABLE)

    @staticmethod
    def _filter_component(query: Query, component: str,
                          exclude: Sequence[str]) -> Query:
        query = query.filter(MenuLink.page_identifier.startswith(
            f"{component}_", autoescape=True
        ))
        for other in exclude:
            query = query.filter(~MenuLink.page_identifier.startswith(
                f"{other}_", autoescape=True
            ))
        return query

    def has_menu_links(self, component: str,
                       exclude: Sequence[str] = ()) -> bool:
        """组件是否已有菜单链接。"""
        validate_component_name(component)
        if not self.menu_system_installed():
            return False
        with self._get_session() as session:
            return self._filter_component(
                session.query(MenuLink.id), component, exclude
            ).first() is not None

    def get_menu_links(self, component: str,
                       exclude: Sequence[str] = ()) -> List[MenuLink]:
        """按排序值获取组件的全部菜单链接。

        Returns:
            MenuLink 列表；菜单系统未安装时返回空列表。
        """
        validate_component_name(component)
        if not self.menu_system_installed():
            return []
        with self._get_session() as session:
            return self._filter_component(
                session.query(MenuLink), component, exclude
            ).order_by(MenuLink.menu_order, MenuLink.id).all()

    def _resolve_icon(self, session: Session, icon: Optional[str],
                      icons_available: bool) -> Optional[str]:
        if not icon or not icons_available:
            return None
        row = session.query(MenuIcon).filter(MenuIcon.name == icon).first()
        return row.svg_path if row else None

    def create_menu_links(self, component: str, admin_base_url: str,
                          section_title: str,
                          items: List[MenuItem]) -> MenuLinkResult:
        """创建组件菜单树：一个分组标题 + 其下的顶级菜单与子菜单。

        整棵树在同一事务中写入，任一行失败则全部回滚，不会留下半棵菜单树。
        排序值从 start_order 开始，每插入一行加一。

        Args:
            component: 组件名称。
            admin_base_url: 后台根地址（如 ``/admin``）。
            section_title: 分组标题。
            items: 顶级菜单项列表，每项可带一层子菜单。

        Returns:
            MenuLinkResult。菜单系统未安装时 success=False。
        """
        validate_component_name(component)
        if not self.menu_system_installed():
            return MenuLinkResult(
                success=False, error="menu_system component not installed"
            )

        base_url = f"{admin_base_url.rstrip('/')}/components/{component}/admin"
        icons_available = self._table_exists(ICON_TABLE)
        menu_order = self.start_order
        created: List[int] = []

        with self._get_session() as session:
            try:
                section = MenuLink(
                    title=section_title,
                    url="#",
                    page_identifier=f"{component}_section",
                    menu_order=menu_order,
                    is_active=True,
                    menu_type="admin",
                    is_section_heading=True,
                )
                session.add(section)
                session.flush()
                created.append(section.id)
                menu_order += 1

                for item in items:
                    parent = MenuLink(
                        title=item.title,
                        url=f"{base_url}/{item.path}",
                        icon=item.icon,
                        icon_svg_path=self._resolve_icon(
                            session, item.icon, icons_available
                        ),
                        page_identifier=f"{component}_{item.page}",
                        section_heading_id=section.id,
                        menu_order=menu_order,
                        is_active=True,
                        menu_type="admin",
                    )
                    session.add(parent)
                    session.flush()
                    created.append(parent.id)
                    menu_order += 1

                    for child in item.children:
                        sub = MenuLink(
                            title=child.title,
                            url=f"{base_url}/{child.path}",
                            icon=child.icon,
                            icon_svg_path=self._resolve_icon(
                                session, child.icon, icons_available
                            ),
                            page_identifier=f"{component}_{child.page}",
                            parent_id=parent.id,
                            section_heading_id=section.id,
                            menu_order=menu_order,
                            is_active=True,
                            menu_type="admin",
                        )
                        session.add(sub)
                        session.flush()
                        created.append(sub.id)
                        menu_order += 1

                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.warning(f"Menu links for {component} rolled back: {e}")
                return MenuLinkResult(success=False, error=str(e))

        logger.info(f"Created {len(created)} menu links for {component}")
        return MenuLinkResult(success=True, menu_ids=created)

    def install_or_skip(self, component: str, admin_base_url: str,
                        section_title: str,
                        items: List[MenuItem],
                        exclude: Sequence[str] = ()) -> MenuLinkResult:
        """幂等安装菜单：已存在同前缀的菜单则跳过。

        Returns:
            MenuLinkResult。跳过时 success=True、skipped=True、menu_ids 为空。
        """
        if self.has_menu_links(component, exclude):
            logger.info(f"Menu links for {component} already exist, skipping")
            return MenuLinkResult(success=True, skipped=True)
        return self.create_menu_links(
            component, admin_base_url, section_title, items
        )

    def remove_menu_links(self, component: str,
                          exclude: Sequence[str] = ()) -> MenuRemovalResult:
        """删除组件的全部菜单链接（按 page_identifier 前缀匹配）。

        菜单系统未安装时视为成功的空操作。

        Args:
            component: 组件名称。
            exclude: 名称以 ``{component}_`` 开头的其他组件，其菜单保留。

        Returns:
            MenuRemovalResult，deleted_count 为删除的行数。
        """
        validate_component_name(component)
        if not self.menu_system_installed():
            return MenuRemovalResult(success=True, deleted_count=0)

        with self._get_session() as session:
            deleted = self._filter_component(
                session.query(MenuLink), component, exclude
            ).delete(synchronize_session=False)
            session.commit()

        logger.info(f"Removed {deleted} menu links for {component}")
        return MenuRemovalResult(success=True, deleted_count=deleted)

    def seed_icons(self, icons: dict) -> int:
        """写入图标字典（已存在的图标名称跳过）。

        Args:
            icons: 图标名称到 SVG path 的映射。

        Returns:
            新写入的图标数量。
        """
        inserted = 0
        with self._get_session() as session:
            existing = {
                icon.name for icon in self.get_all(MenuIcon, session=session)
            }
            for name, svg_path in icons.items():
                if name in existing:
                    continue
                session.add(MenuIcon(name=name, svg_path=svg_path))
                inserted += 1
            session.commit()
        return inserted
