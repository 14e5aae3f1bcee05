"""lifecycle 模块：组件的安装、迁移、备份与卸载。

安装器、卸载器等依赖组件定义（config.component_config），而组件定义又依赖
本模块的迁移工具，因此这里只导出不依赖组件定义的结构，其余请从子模块导入::

    from lifecycle.installer import ComponentInstaller
    from lifecycle.uninstaller import ComponentUninstaller
"""
from .results import (
    MigrationReport, BackupResult, UninstallOptions, InstallOptions,
    UninstallResult, InstallResult
)
from .migrations import Migration, run_migrations, compare_versions

__all__ = [
    "MigrationReport",
    "BackupResult",
    "UninstallOptions",
    "InstallOptions",
    "UninstallResult",
    "InstallResult",
    "Migration",
    "run_migrations",
    "compare_versions",
]
