"""初始化菜单系统（menu_system 组件的共享表与图标字典）"""
import argparse
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import DatabaseManager
from config.log import configure_logging
from loguru import logger

# 组件菜单常用图标（Material Symbols 的 SVG path）
DEFAULT_ICONS = {
    "dashboard": "M3 13h8V3H3v10zm0 8h8v-6H3v6zm10 0h8V11h-8v10zm0-18v6h8V3h-8z",
    "widgets": "M13 13v8h8v-8h-8zM3 21h8v-8H3v8zM3 3v8h8V3H3zm13.66-1.31L11 7.34 16.66 13l5.66-5.66-5.66-5.65z",
    "add": "M19 13h-6v6h-2v-6H5v-2h6V5h2v6h6v2z",
    "list": "M3 13h2v-2H3v2zm0 4h2v-2H3v2zm0-8h2V7H3v2zm4 4h14v-2H7v2zm0 4h14v-2H7v2zM7 7v2h14V7H7z",
    "settings": "M19.14 12.94c.04-.3.06-.61.06-.94 0-.32-.02-.64-.07-.94l2.03-1.58-1.92-3.32-2.39.96c-.5-.38-1.03-.7-1.62-.94L14.4 2.81h-3.84l-.36 2.37c-.59.24-1.13.57-1.62.94l-2.39-.96-1.92 3.32 2.03 1.58c-.05.3-.09.63-.09.94s.02.64.07.94l-2.03 1.58 1.92 3.32 2.39-.96c.5.38 1.03.7 1.62.94l.36 2.37h3.84l.36-2.37c.59-.24 1.13-.56 1.62-.94l2.39.96 1.92-3.32-2.03-1.58zM12 15.6c-1.98 0-3.6-1.62-3.6-3.6s1.62-3.6 3.6-3.6 3.6 1.62 3.6 3.6-1.62 3.6-3.6 3.6z",
    "tune": "M3 17v2h6v-2H3zM3 5v2h10V5H3zm10 16v-2h8v-2h-8v-2h-2v6h2zM7 9v2H3v2h4v2h2V9H7zm14 4v-2H11v2h10zm-6-4h2V7h4V5h-4V3h-2v6z",
    "upload": "M9 16h6v-6h4l-7-7-7 7h4zm-4 2h14v2H5z",
}


def init_database(database_url=None) -> DatabaseManager:
    """创建菜单系统表并写入图标字典"""
    logger.info("Initializing menu system...")

    db = DatabaseManager(database_url)

    logger.info("Creating tables...")
    db.create_menu_tables()

    logger.info("Inserting icons...")
    inserted = db.menus.seed_icons(DEFAULT_ICONS)
    logger.info(f"Inserted {inserted} icons")

    logger.info("Menu system initialization completed!")
    return db


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="初始化菜单系统")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    args = parser.parse_args(argv)

    configure_logging()
    db = init_database(args.db)
    db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
