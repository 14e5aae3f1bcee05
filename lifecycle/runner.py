"""组件迁移入口：读取当前版本并执行组件声明的迁移。"""
from typing import List

from loguru import logger

from config.component_config import ComponentConfig
from database import DatabaseManager
from .migrations import (
    INITIAL_VERSION, compare_versions, parse_version, run_migrations
)
from .results import MigrationReport


class MigrationRunner:
    """针对单个组件的迁移执行器。

    当前版本取自 ``{component}_config`` 的 version 行，没有记录时视为 0.0.0。
    """

    def __init__(self, db: DatabaseManager, component: ComponentConfig) -> None:
        self.db = db
        self.component = component
        self.config_repo = db.component_config(component.name)

    def current_version(self) -> str:
        return self.config_repo.get_version() or INITIAL_VERSION

    def pending(self) -> List[str]:
        """尚未执行的迁移版本列表（升序）。"""
        current = self.current_version()
        return [
            m.version for m in sorted(self.component.get_migrations(),
                                      key=lambda m: parse_version(m.version))
            if compare_versions(current, m.version) < 0
        ]

    def run(self) -> MigrationReport:
        """执行所有待执行的迁移。"""
        current = self.current_version()
        report = run_migrations(
            self.db.conn, current, self.component.get_migrations(),
            self.config_repo.set_version
        )
        if report.applied:
            logger.info(f"{self.component.name}: {current} -> "
                        f"{report.final_version} "
                        f"(applied {', '.join(report.applied)})")
        return report
