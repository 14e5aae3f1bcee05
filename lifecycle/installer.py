"""组件安装器：建表、写入默认参数、记录版本、执行迁移、创建菜单、生成配置文件。

安装可以安全重跑：建表跳过已存在的表，默认参数按 upsert 写入，
菜单链接通过 install_or_skip 避免重复创建。配置文件已存在时视为已安装，
除非指定 force。
"""
import os
import secrets
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import MetaData
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from config.component_config import ComponentConfig
from config.component_settings import (
    ComponentSettings, config_file_path, write_component_settings
)
from database import DatabaseManager
from database.component_repos import INSTALLED_AT_KEY
from database.models import build_component_tables
from .dependencies import check_dependencies
from .results import InstallOptions, InstallResult
from .runner import MigrationRunner


class ComponentInstaller:
    """组件安装器。

    Attributes:
        db: 数据库管理器。
        component: 组件定义。
        components_dir: 组件根目录（配置文件与备份所在位置）。
        admin_base_url: 后台根地址，用于生成菜单链接。
        base_url: 站点根地址，写入组件配置文件。
    """

    def __init__(self, db: DatabaseManager, component: ComponentConfig,
                 components_dir: Optional[str] = None,
                 admin_base_url: Optional[str] = None,
                 base_url: str = "") -> None:
        self.db = db
        self.component = component
        self.components_dir = components_dir
        self.admin_base_url = admin_base_url or settings.admin_base_url
        self.base_url = base_url
        self.config_path = config_file_path(component.name, components_dir)

    def create_tables(self) -> None:
        """创建核心表与组件声明的业务表（已存在的表跳过）。"""
        metadata = MetaData()
        build_component_tables(self.component.name, metadata)
        self.component.define_tables(metadata)
        self.db.conn.create_tables(metadata)

    def install(self, options: Optional[InstallOptions] = None
                ) -> InstallResult:
        """安装组件。

        Args:
            options: 安装选项。

        Returns:
            InstallResult。依赖未满足、菜单系统缺失、默认参数写入失败记为
            警告；命名空间与已安装组件相互包含（如 ``shop`` 与
            ``shop_extra``）、建表失败、迁移失败、配置文件写入失败记为错误。
        """
        options = options or InstallOptions()
        result = InstallResult()
        name = self.component.name

        if os.path.exists(self.config_path) and not options.force:
            result.errors.append(
                "Component is already installed "
                "(delete the config file to reinstall)"
            )
            return result

        try:
            conflicts = self.db.registry.conflicting_components(name)
            unmet = check_dependencies(self.db, self.component)
        except SQLAlchemyError as e:
            result.errors.append(f"Database error: {e}")
            return result
        if conflicts:
            result.errors.append(
                f"Component name {name} overlaps the namespace of installed "
                f"component(s): {', '.join(conflicts)}"
            )
            return result
        # 依赖未满足只记警告，组件仍可安装
        result.warnings.extend(unmet)

        logger.info(f"Installing component {name}")

        # Step 1: 数据表
        try:
            self.create_tables()
            result.steps_completed.append("Database tables created")
        except SQLAlchemyError as e:
            result.errors.append(f"Failed to create tables: {e}")
            return result

        # Step 2: 默认参数
        defaults = self.db.parameters(name).insert_defaults(
            self.component.get_default_parameters()
        )
        if defaults.inserted:
            result.steps_completed.append(
                f"Inserted {defaults.inserted} default parameters"
            )
        result.warnings.extend(defaults.errors)

        # Step 3: 版本记录
        config_repo = self.db.component_config(name)
        installed_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if config_repo.get_version() is None:
            config_repo.set_version(self.component.baseline_version)
            config_repo.set_value(INSTALLED_AT_KEY, installed_at)
        else:
            installed_at = config_repo.get_value(INSTALLED_AT_KEY, installed_at)

        # Step 4: 迁移
        report = MigrationRunner(self.db, self.component).run()
        if report.applied:
            result.steps_completed.append(
                f"Applied migrations: {', '.join(report.applied)}"
            )
        result.errors.extend(report.errors)
        result.version = report.final_version

        # Step 5: 菜单链接
        if not options.skip_menu:
            menu = self.db.menus.install_or_skip(
                name, self.admin_base_url,
                self.component.get_menu_section(),
                self.component.get_menu_items()
            )
            if menu.skipped:
                result.steps_completed.append("Menu links already exist")
            elif menu.success:
                result.steps_completed.append(
                    f"Created {len(menu.menu_ids)} menu links"
                )
            else:
                result.warnings.append(f"Menu links not created: {menu.error}")

        # Step 6: 配置文件
        try:
            write_component_settings(self.config_path, ComponentSettings(
                name=name,
                version=result.version,
                installed_at=installed_at,
                database_url=self.db.database_url,
                table_prefix=f"{name}_",
                base_url=self.base_url,
                admin_url=self.admin_base_url,
                encryption_key=secrets.token_hex(32),
            ))
            result.steps_completed.append("Config file written")
        except OSError as e:
            result.errors.append(f"Failed to write config file: {e}")

        result.success = not result.errors
        logger.info(f"Install of {name} finished: success={result.success}, "
                    f"version={result.version}")
        return result
