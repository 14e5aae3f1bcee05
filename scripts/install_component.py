#!/usr/bin/env python3
"""安装组件

使用方式：
    python scripts/install_component.py widgets
    python scripts/install_component.py widgets --admin-url https://example.com/admin --json
"""
import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.component_config import get_component_config
from config.log import configure_logging
from database import DatabaseManager
from lifecycle.installer import ComponentInstaller
from lifecycle.results import InstallOptions


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="安装组件")
    parser.add_argument("component", help="组件名称（如 widgets）")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    parser.add_argument("--components-dir", default=None,
                        help="组件根目录（配置文件写入位置）")
    parser.add_argument("--admin-url", default=None, help="后台根地址")
    parser.add_argument("--base-url", default="", help="站点根地址")
    parser.add_argument("--skip-menu", action="store_true",
                        help="不创建菜单链接")
    parser.add_argument("--force", action="store_true",
                        help="配置文件已存在时仍然重新安装")
    parser.add_argument("--json", action="store_true",
                        help="输出 JSON 结果")
    args = parser.parse_args(argv)

    configure_logging(quiet=args.json)

    try:
        component = get_component_config(args.component)
    except KeyError as e:
        print(f"✗ {e.args[0]}", file=sys.stderr)
        return 1

    db = DatabaseManager(args.db)
    try:
        installer = ComponentInstaller(
            db, component,
            components_dir=args.components_dir,
            admin_base_url=args.admin_url,
            base_url=args.base_url,
        )
        result = installer.install(
            InstallOptions(skip_menu=args.skip_menu, force=args.force)
        )
    finally:
        db.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        mark = "✓" if result.success else "✗"
        print(f"{mark} {args.component} {result.version or ''}".rstrip())
        for step in result.steps_completed:
            print(f"  - {step}")
        for error in result.errors:
            print(f"  ✗ {error}")
        for warning in result.warnings:
            print(f"  ⚠ {warning}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
