#!/usr/bin/env python3
"""执行组件的待执行迁移

使用方式：
    python scripts/migrate_component.py widgets
    python scripts/migrate_component.py widgets --dry-run
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.component_config import get_component_config
from config.log import configure_logging
from database import DatabaseManager
from lifecycle.runner import MigrationRunner


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="执行组件迁移")
    parser.add_argument("component", help="组件名称（如 widgets）")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    parser.add_argument("--dry-run", action="store_true",
                        help="只列出待执行的迁移")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        component = get_component_config(args.component)
    except KeyError as e:
        print(f"✗ {e.args[0]}", file=sys.stderr)
        return 1

    db = DatabaseManager(args.db)
    try:
        runner = MigrationRunner(db, component)
        print(f"{args.component}: current version {runner.current_version()}")

        if args.dry_run:
            pending = runner.pending()
            if not pending:
                print("No pending migrations.")
            for version in pending:
                print(f"  - {version}")
            return 0

        report = runner.run()
    finally:
        db.close()

    for version in report.applied:
        print(f"  ✓ {version}")
    for error in report.errors:
        print(f"  ✗ {error}")
    print(f"{args.component}: now at {report.final_version}")
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
