#!/usr/bin/env python3
"""卸载组件

使用方式：
    # 交互式确认
    python scripts/uninstall_component.py widgets

    # 静默模式：不询问，输出 JSON 结果
    python scripts/uninstall_component.py widgets --silent

    # 自动模式，跳过备份
    python scripts/uninstall_component.py widgets --auto --no-backup

退出码：成功为 0，失败为 1。
"""
import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.log import configure_logging
from database import DatabaseManager
from database.models import validate_component_name
from lifecycle.results import UninstallOptions, UninstallResult
from lifecycle.uninstaller import ComponentUninstaller


def print_report(component: str, result: UninstallResult) -> None:
    """输出可读的卸载结果"""
    title = f"{component} component uninstaller"
    print(title)
    print("=" * len(title))
    print()

    if result.success:
        print("✓ Uninstallation completed successfully!")
        print("\nCompleted steps:")
        for step in result.steps_completed:
            print(f"  - {step}")
    elif result.errors:
        print("✗ Uninstallation failed!")
        print("\nErrors:")
        for error in result.errors:
            print(f"  - {error}")
    else:
        print("Uninstallation cancelled.")

    if result.warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"  - {warning}")


def main(argv=None, input_func=input) -> int:
    parser = argparse.ArgumentParser(description="卸载组件并删除其全部数据")
    parser.add_argument("component", help="组件名称（如 widgets）")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    parser.add_argument("--components-dir", default=None,
                        help="组件根目录（配置文件与备份所在位置）")
    parser.add_argument("--silent", "--yes-to-all", dest="silent",
                        action="store_true",
                        help="不询问确认，输出 JSON 结果")
    parser.add_argument("--auto", action="store_true",
                        help="不询问确认直接卸载，输出 JSON 结果")
    parser.add_argument("--no-backup", action="store_true",
                        help="跳过卸载前备份")
    args = parser.parse_args(argv)

    scripted = args.silent or args.auto
    configure_logging(quiet=scripted)

    options = UninstallOptions(
        silent=args.silent, auto=args.auto, no_backup=args.no_backup
    )

    try:
        validate_component_name(args.component)
    except ValueError as e:
        result = UninstallResult(errors=[str(e)])
        if scripted:
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(f"✗ {e}", file=sys.stderr)
        return 1

    if scripted:
        confirm = True
    else:
        print(f"⚠️  This will permanently delete all {args.component} data:")
        print("    parameters, configuration, component tables and menu links.")
        if not args.no_backup:
            print("    A JSON backup is written first.")
        answer = input_func(f"Type 'yes' to uninstall {args.component}: ")
        confirm = answer.strip().lower() in ("yes", "y")

    db = DatabaseManager(args.db)
    try:
        uninstaller = ComponentUninstaller(
            db, args.component, components_dir=args.components_dir
        )
        result = uninstaller.uninstall(confirm, options)
    finally:
        db.close()

    if scripted:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(args.component, result)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
