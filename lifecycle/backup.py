"""卸载前备份：把组件全部表数据导出为一个 JSON 快照。

快照结构::

    {
        "parameters": [...],            # {component}_parameters
        "config": [...],                # {component}_config
        "{component}_xxx": [...],       # 组件的其他表，按完整表名
        "backup_timestamp": "2024-01-28 10:00:00"
    }

文件写入 ``{components_dir}/{component}/backups/uninstall_backup_{时间戳}.json``，
不压缩、不加密。
"""
import json
import os
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List

from loguru import logger
from sqlalchemy import MetaData, Table, select
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from config.component_settings import component_dir
from database import DatabaseManager
from database.models import in_namespace
from .results import BackupResult

BACKUP_FILE_PATTERN = re.compile(
    r"^uninstall_backup_(?P<stamp>\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})"
    r"(?:_(?P<seq>\d+))?\.json$"
)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def load_backup(path: str) -> Dict[str, Any]:
    """读取备份文件。"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class BackupService:
    """组件数据备份。

    Attributes:
        db: 数据库管理器。
        component: 组件名称。
        backup_dir: 备份目录。
    """

    def __init__(self, db: DatabaseManager, component: str,
                 components_dir: Optional[str] = None) -> None:
        self.db = db
        self.component = component
        self.backup_dir = os.path.join(
            component_dir(component, components_dir), settings.backup_dir_name
        )

    def _snapshot_key(self, table_name: str) -> str:
        if table_name == f"{self.component}_parameters":
            return "parameters"
        if table_name == f"{self.component}_config":
            return "config"
        return table_name

    def snapshot(self) -> Dict[str, Any]:
        """读取组件全部表的数据（不含嵌套在其命名空间下的其他组件）。

        Raises:
            sqlalchemy.exc.SQLAlchemyError: 读取失败。
        """
        data: Dict[str, Any] = {"parameters": [], "config": []}
        nested = self.db.registry.nested_components(self.component)
        tables = [
            name for name in
            self.db.conn.list_tables(prefix=f"{self.component}_")
            if in_namespace(self.component, name, nested)
        ]
        metadata = MetaData()

        with self.db.get_session() as session:
            for table_name in tables:
                table = Table(table_name, metadata,
                              autoload_with=self.db.engine)
                rows: List[Dict[str, Any]] = [
                    dict(row) for row in
                    session.execute(select(table)).mappings().all()
                ]
                data[self._snapshot_key(table_name)] = rows

        return data

    def _backup_path(self, now: datetime) -> str:
        stamp = now.strftime("%Y-%m-%d_%H-%M-%S")
        path = os.path.join(self.backup_dir, f"uninstall_backup_{stamp}.json")
        suffix = 1
        while os.path.exists(path):
            path = os.path.join(
                self.backup_dir, f"uninstall_backup_{stamp}_{suffix}.json"
            )
            suffix += 1
        return path

    def create_backup(self) -> BackupResult:
        """导出组件数据到带时间戳的 JSON 文件。

        Returns:
            BackupResult，成功时 backup_file 为备份文件路径。
        """
        now = datetime.now()
        try:
            data = self.snapshot()
            data["backup_timestamp"] = now.strftime("%Y-%m-%d %H:%M:%S")

            os.makedirs(self.backup_dir, exist_ok=True)
            path = self._backup_path(now)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False,
                          default=_json_default)
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Backup of {self.component} failed: {e}")
            return BackupResult(success=False, error=str(e))

        logger.info(f"Backup of {self.component} written to {path}")
        return BackupResult(success=True, backup_file=path)

    def list_backups(self) -> List[str]:
        """列出组件的备份文件路径，最新的在前。

        只识别 ``uninstall_backup_{时间戳}[_{序号}].json``，目录不存在时返回空列表。
        """
        if not os.path.isdir(self.backup_dir):
            return []
        found = []
        for name in os.listdir(self.backup_dir):
            match = BACKUP_FILE_PATTERN.match(name)
            if match:
                key = (match.group("stamp"), int(match.group("seq") or 0))
                found.append((key, os.path.join(self.backup_dir, name)))
        found.sort(reverse=True)
        return [path for _, path in found]

    def cleanup(self, keep: int) -> List[str]:
        """只保留最新的 keep 个备份，删除其余的。

        Args:
            keep: 保留的备份数量，0 表示全部删除。

        Returns:
            已删除的文件路径。删除失败的文件记警告并跳过。

        Raises:
            ValueError: keep 为负数。
        """
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")
        removed = []
        for path in self.list_backups()[keep:]:
            try:
                os.remove(path)
                removed.append(path)
            except OSError as e:
                logger.warning(f"Could not remove backup {path}: {e}")
        if removed:
            logger.info(f"Removed {len(removed)} old backups of "
                        f"{self.component}")
        return removed
