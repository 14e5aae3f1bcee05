"""迁移执行器：按版本顺序执行组件的表结构升级。

状态机：``version(n) --[迁移 n+1 成功]--> version(n+1)``。
每个迁移成功后立即持久化新版本；任一迁移失败即停止，版本停留在最后一个
成功的迁移上，已执行的迁移不回滚。

注意：执行器不加锁，"读取版本 → 执行迁移 → 写入版本" 不能由两个进程并发运行。
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from loguru import logger
from sqlalchemy import Index, MetaData, Table, inspect, text
from sqlalchemy.engine import Connection

from database.connection import DatabaseConnection
from .results import MigrationReport

INITIAL_VERSION = "0.0.0"


@dataclass(frozen=True)
class Migration:
    """一个版本化的迁移。

    Attributes:
        version: 目标版本（语义化版本号）。
        apply: 迁移函数，接收事务中的 Connection，失败时抛出异常。
        description: 说明文字。
    """
    version: str
    apply: Callable[[Connection], None]
    description: str = ""


def parse_version(version: str) -> Tuple[int, ...]:
    """把版本号解析为整数元组，``1.10.0-beta`` → ``(1, 10, 0)``。

    每段只取开头的数字，缺失或非数字的段按 0 处理。
    """
    parts = []
    for part in str(version).strip().lstrip("vV").split("."):
        match = re.match(r"\d+", part)
        parts.append(int(match.group()) if match else 0)
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


def compare_versions(a: str, b: str) -> int:
    """比较两个版本号，返回 -1 / 0 / 1。"""
    va, vb = list(parse_version(a)), list(parse_version(b))
    width = max(len(va), len(vb))
    va += [0] * (width - len(va))
    vb += [0] * (width - len(vb))
    return (va > vb) - (va < vb)


def run_migrations(conn: DatabaseConnection, current_version: str,
                   migrations: Sequence[Migration],
                   version_store: Callable[[str], None]) -> MigrationReport:
    """从 current_version 开始按版本升序执行迁移。

    版本不高于当前版本的迁移跳过，永不重复执行。每个迁移在独立事务中运行，
    成功后调用 version_store 持久化其版本。

    Args:
        conn: 数据库连接。
        current_version: 当前已记录的版本。
        migrations: 迁移列表，顺序无关。
        version_store: 持久化版本的回调。

    Returns:
        MigrationReport。
    """
    version = current_version or INITIAL_VERSION
    applied: List[str] = []
    errors: List[str] = []

    for migration in sorted(migrations, key=lambda m: parse_version(m.version)):
        if compare_versions(version, migration.version) >= 0:
            continue

        logger.info(f"Applying migration {migration.version}: "
                    f"{migration.description}")
        try:
            with conn.begin() as connection:
                migration.apply(connection)
        except Exception as e:
            message = f"Migration {migration.version} failed: {e}"
            logger.error(message)
            errors.append(message)
            break

        try:
            version_store(migration.version)
        except Exception as e:
            # 迁移已生效但版本未记录，下次运行会重跑该迁移
            message = (f"Migration {migration.version} applied but the "
                       f"version could not be recorded: {e}")
            logger.error(message)
            errors.append(message)
            break
        version = migration.version
        applied.append(migration.version)

    return MigrationReport(final_version=version, applied=applied,
                           errors=errors)


def column_exists(connection: Connection, table_name: str,
                  column_name: str) -> bool:
    """表中是否已有该列。"""
    columns = inspect(connection).get_columns(table_name)
    return any(c["name"] == column_name for c in columns)


def add_column_if_missing(connection: Connection, table_name: str,
                          column_name: str, column_ddl: str) -> bool:
    """列不存在时执行 ``ALTER TABLE ... ADD COLUMN``。

    先探测列是否存在再修改，迁移在部分失败后可以安全重跑。

    Args:
        connection: 事务中的连接。
        table_name: 表名。
        column_name: 列名。
        column_ddl: 列类型与约束，如 ``VARCHAR(50) NULL``。

    Returns:
        是否新增了列。
    """
    if column_exists(connection, table_name, column_name):
        return False
    quote = connection.dialect.identifier_preparer.quote
    connection.execute(text(
        f"ALTER TABLE {quote(table_name)} "
        f"ADD COLUMN {quote(column_name)} {column_ddl}"
    ))
    logger.info(f"Added column {table_name}.{column_name}")
    return True


def add_index_if_missing(connection: Connection, table_name: str,
                         index_name: str, columns: List[str]) -> bool:
    """索引不存在时创建索引。

    Returns:
        是否新建了索引。
    """
    existing = {i["name"] for i in inspect(connection).get_indexes(table_name)}
    if index_name in existing:
        return False
    table = Table(table_name, MetaData(), autoload_with=connection)
    Index(index_name, *[table.c[name] for name in columns]).create(connection)
    logger.info(f"Added index {index_name} on {table_name}")
    return True
