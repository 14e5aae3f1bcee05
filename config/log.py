"""日志配置

各模块直接 ``from loguru import logger`` 记录日志；命令行入口在启动时调用
configure_logging()，按 settings.log_level 设置输出级别。
"""
import sys
from typing import Optional

from loguru import logger

from config.settings import settings


def configure_logging(level: Optional[str] = None, quiet: bool = False) -> None:
    """重新配置 loguru 的 stderr 输出。

    Args:
        level: 日志级别，默认取 settings.log_level。
        quiet: 只输出 ERROR 及以上（用于 --silent 等需要干净 stdout 的场景）。
    """
    logger.remove()
    logger.add(sys.stderr, level="ERROR" if quiet else (level or settings.log_level))
