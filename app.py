#!/usr/bin/env python3
"""组件后台管理 - 命令行入口

提供后台设置页的命令行版本：
1. 查看已安装组件
2. 查看、读取、修改组件参数
3. 查看、清理组件卸载备份

使用方式：
    python app.py components

    python app.py params list widgets
    python app.py params list widgets --section Display --search color
    python app.py params get widgets Display color --default red
    python app.py params set widgets Display color blue

    python app.py backups widgets --keep 3

    # 指定数据库
    python app.py --db sqlite:///data/admin.db components

环境变量（在 .env 文件中配置）：
    DATABASE_URL      数据库连接地址
    LOG_LEVEL         日志级别（默认 INFO）
"""
import argparse
import os
import sys

from loguru import logger

from config.log import configure_logging
from database import DatabaseManager
from database.models import validate_component_name
from database.parameter_repos import validate_range
from lifecycle.backup import BackupService


def cmd_components(db: DatabaseManager, args) -> int:
    """列出已安装组件"""
    components = db.list_components()
    if not components:
        print("No components installed.")
        return 0
    for info in components:
        print(f"{info.name:<20} {info.version or '-':<10} "
              f"{info.installed_at or '-'}")
        for table in info.tables:
            print(f"    {table}")
    return 0


def cmd_params_list(db: DatabaseManager, args) -> int:
    """按分组列出参数"""
    records = db.parameters(args.component).list_parameters(
        section=args.section, search=args.search
    )
    if not records:
        print(f"No parameters for {args.component}.")
        return 0

    current_section = None
    for record in records:
        if record.section != current_section:
            current_section = record.section
            print(f"[{current_section}]")
        line = (f"  {record.parameter_name} = {record.value} "
                f"({record.value_type.value})")
        if record.description:
            line += f"  # {record.description}"
        print(line)
    return 0


def cmd_params_get(db: DatabaseManager, args) -> int:
    value = db.get_parameter(
        args.component, args.section, args.name, args.default
    )
    if value is None:
        print(f"{args.section}.{args.name} is not set", file=sys.stderr)
        return 1
    print(value)
    return 0


def cmd_params_set(db: DatabaseManager, args) -> int:
    """写入参数，已有范围限制的参数先校验"""
    params = db.parameters(args.component)

    record = params.get_record(args.section, args.name)
    if record is not None:
        error = validate_range(record, args.value)
        if error:
            print(f"✗ {error}", file=sys.stderr)
            return 1

    if not params.set_parameter(args.section, args.name, args.value,
                                description=args.description):
        print(f"✗ {args.component} is not installed", file=sys.stderr)
        return 1

    logger.info(f"{args.component}: {args.section}.{args.name} updated")
    print(f"✓ {args.section}.{args.name} = {args.value}")
    return 0


def cmd_backups(db: DatabaseManager, args) -> int:
    """列出组件备份，指定 --keep 时先清理旧备份"""
    if args.keep is not None and args.keep < 0:
        print("✗ --keep must be 0 or greater", file=sys.stderr)
        return 1

    service = BackupService(db, args.component, args.components_dir)
    if args.keep is not None:
        for path in service.cleanup(keep=args.keep):
            print(f"✓ Removed {os.path.basename(path)}")

    backups = service.list_backups()
    if not backups:
        print(f"No backups for {args.component}.")
        return 0
    for path in backups:
        print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="组件后台管理")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("components", help="列出已安装组件")
    p.set_defaults(func=cmd_components)

    params = sub.add_parser("params", help="组件参数管理")
    params_sub = params.add_subparsers(dest="params_command", required=True)

    p = params_sub.add_parser("list", help="列出参数")
    p.add_argument("component")
    p.add_argument("--section", default=None, help="只列出该分组")
    p.add_argument("--search", default=None, help="按参数名或说明搜索")
    p.set_defaults(func=cmd_params_list)

    p = params_sub.add_parser("get", help="读取参数")
    p.add_argument("component")
    p.add_argument("section")
    p.add_argument("name")
    p.add_argument("--default", default=None, help="参数不存在时输出的值")
    p.set_defaults(func=cmd_params_get)

    p = params_sub.add_parser("set", help="写入参数")
    p.add_argument("component")
    p.add_argument("section")
    p.add_argument("name")
    p.add_argument("value")
    p.add_argument("--description", default=None, help="参数说明")
    p.set_defaults(func=cmd_params_set)

    p = sub.add_parser("backups", help="列出或清理组件备份")
    p.add_argument("component")
    p.add_argument("--components-dir", default=None,
                   help="组件根目录（配置文件与备份所在位置）")
    p.add_argument("--keep", type=int, default=None,
                   help="只保留最新的 N 个备份")
    p.set_defaults(func=cmd_backups)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    component = getattr(args, "component", None)
    if component is not None:
        try:
            validate_component_name(component)
        except ValueError as e:
            print(f"✗ {e}", file=sys.stderr)
            return 1

    db = DatabaseManager(args.db)
    try:
        return args.func(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
