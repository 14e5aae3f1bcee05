"""组件卸载器：备份后移除组件的全部持久化状态。

状态机：``Installed --[备份]--> BackupTaken --[删表]--> Uninstalled``。
备份是尽力而为的：备份失败只记录警告，卸载继续执行，保证组件总能被卸载。

步骤：
1. 备份（可通过 no_backup 跳过）
2. 删除菜单链接
3. 按外键依赖逆序删除 ``{component}_*`` 表（子表先删），顺序由数据库中
   实际的外键关系推导，不依赖手工维护的表名列表
4. 删除组件配置文件

名称以 ``{component}_`` 开头的其他已安装组件（如 widgets 之于
widgets_extra）的表和菜单不在删除范围内。仍有已安装组件依赖本组件时
记录警告，卸载照常进行。

只有数据库连接不可用会导致整体失败；单张表删除失败等问题降级为警告。
"""
import os
from typing import Optional, List

from loguru import logger
from sqlalchemy import MetaData, Table
from sqlalchemy.exc import SQLAlchemyError

from config.component_settings import config_file_path
from database import DatabaseManager
from database.models import in_namespace, validate_component_name
from .backup import BackupService
from .dependencies import installed_dependents
from .results import UninstallOptions, UninstallResult


class ComponentUninstaller:
    """组件卸载器。

    只需要组件名称即可工作：要删除的表从数据库中按前缀反射得到，
    因此即使组件定义已不可用也能完成卸载。

    Example::

        uninstaller = ComponentUninstaller(db, "widgets")
        result = uninstaller.uninstall(
            confirm=True, options=UninstallOptions(auto=True)
        )
        print(result.to_dict())
    """

    def __init__(self, db: DatabaseManager, component: str,
                 components_dir: Optional[str] = None) -> None:
        self.db = db
        self.component = validate_component_name(component)
        self.components_dir = components_dir
        self.config_path = config_file_path(component, components_dir)

    def _reflect_tables(self) -> List[Table]:
        nested = self.db.registry.nested_components(self.component)
        metadata = MetaData()
        metadata.reflect(
            bind=self.db.engine,
            only=lambda name, _: in_namespace(self.component, name, nested)
        )
        # 反射会顺带加载被外键引用的其他表，这里只保留组件自己的表
        return [
            table for table in reversed(metadata.sorted_tables)
            if in_namespace(self.component, table.name, nested)
        ]

    def drop_order(self) -> List[str]:
        """组件表的删除顺序（引用其他表的子表在前）。"""
        return [table.name for table in self._reflect_tables()]

    def drop_tables(self, result: UninstallResult) -> int:
        """按依赖逆序删除组件表，失败记为警告。

        Returns:
            成功删除的表数量。
        """
        dropped = 0
        for table in self._reflect_tables():
            try:
                table.drop(self.db.engine, checkfirst=True)
                dropped += 1
            except SQLAlchemyError as e:
                message = f"Error dropping table {table.name}: {e}"
                logger.warning(message)
                result.warnings.append(message)
        return dropped

    def uninstall(self, confirm: bool,
                  options: Optional[UninstallOptions] = None
                  ) -> UninstallResult:
        """卸载组件。

        交互式确认、静默（--silent）、自动（--auto）三种入口都调用本方法，
        返回相同结构的结果。

        Args:
            confirm: 调用方是否已确认卸载。未确认时不做任何修改。
            options: 卸载选项。

        Returns:
            UninstallResult。
        """
        options = options or UninstallOptions()
        result = UninstallResult()

        if not confirm:
            result.warnings.append("Uninstall not confirmed, nothing changed")
            return result

        try:
            self.db.conn.ping()
        except SQLAlchemyError as e:
            result.errors.append(f"Database error: {e}")
            return result

        if (not os.path.exists(self.config_path)
                and not self.db.registry.is_installed(self.component)):
            result.errors.append("Component is not installed")
            return result

        try:
            nested = self.db.registry.nested_components(self.component)
            dependents = installed_dependents(self.db, self.component)
        except SQLAlchemyError as e:
            result.errors.append(f"Database error: {e}")
            return result
        for name in dependents:
            result.warnings.append(
                f"Installed component {name} depends on {self.component}"
            )

        logger.info(f"Uninstalling component {self.component}")

        # Step 1: 备份
        if options.no_backup:
            logger.info("Backup skipped (--no-backup)")
        else:
            backup = BackupService(
                self.db, self.component, self.components_dir
            ).create_backup()
            if backup.success:
                result.backup_file = backup.backup_file
                result.steps_completed.append(
                    f"Backup created: {os.path.basename(backup.backup_file)}"
                )
            else:
                result.warnings.append(
                    f"Backup failed, continuing without backup: {backup.error}"
                )

        # Step 2: 菜单链接
        try:
            menu = self.db.menus.remove_menu_links(self.component,
                                                   exclude=nested)
            result.steps_completed.append(
                f"Menu links removed ({menu.deleted_count})"
            )
        except SQLAlchemyError as e:
            result.warnings.append(f"Could not remove menu links: {e}")

        # Step 3: 数据表
        try:
            dropped = self.drop_tables(result)
        except SQLAlchemyError as e:
            result.warnings.append(f"Could not read table list: {e}")
            dropped = 0
        if dropped:
            result.steps_completed.append(f"Dropped {dropped} tables")

        # Step 4: 配置文件
        if os.path.exists(self.config_path):
            try:
                os.remove(self.config_path)
                result.steps_completed.append("Config file removed")
            except OSError as e:
                result.warnings.append(
                    f"Could not remove config file (may need manual "
                    f"deletion): {e}"
                )

        result.success = not result.errors
        logger.info(f"Uninstall of {self.component} finished: "
                    f"success={result.success}, "
                    f"warnings={len(result.warnings)}")
        return result
