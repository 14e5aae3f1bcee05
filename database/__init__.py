"""database 模块：组件生命周期的数据访问层。"""
from .manager import DatabaseManager
from .connection import DatabaseConnection
from .types import (
    ValueType, ParameterRecord, MenuItem, MenuLinkResult,
    MenuRemovalResult, DefaultsResult, ComponentInfo
)

__all__ = [
    "DatabaseManager",
    "DatabaseConnection",
    "ValueType",
    "ParameterRecord",
    "MenuItem",
    "MenuLinkResult",
    "MenuRemovalResult",
    "DefaultsResult",
    "ComponentInfo",
]
