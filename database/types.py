"""数据访问层的结果与记录类型。

仓库方法不抛出"缺失依赖"一类的软错误，而是通过这里定义的结果对象
（``success`` / ``error`` / ``errors``）告知调用方，由调用方决定严重程度。
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ValueType(Enum):
    """参数值的显示类型（决定后台使用的输入控件）"""
    BOOLEAN = "boolean"   # 开关：值为 yes/no
    NUMBER = "number"     # 数字输入框，可带 min/max 范围
    TEXT = "text"         # 普通文本


@dataclass
class ParameterRecord:
    """一条组件参数。

    Attributes:
        id: 主键。
        section: 分组名称（如 Display、Queue）。
        parameter_name: 参数名，与 section 组成唯一键。
        value: 参数值，始终以文本形式存储。
        value_type: 显示类型。
        description: 说明文字。
        min_range: 数值下限（仅用于数字输入提示与校验）。
        max_range: 数值上限。
        updated_at: 最后更新时间。
    """
    id: int
    section: str
    parameter_name: str
    value: str
    value_type: ValueType = ValueType.TEXT
    description: Optional[str] = None
    min_range: Optional[float] = None
    max_range: Optional[float] = None
    updated_at: Optional[datetime] = None


@dataclass
class DefaultsResult:
    """批量写入默认参数的结果"""
    success: bool
    inserted: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class MenuItem:
    """组件声明的一个菜单项。

    Attributes:
        title: 显示标题。
        page: 页面标识后缀，最终 page_identifier 为 ``{component}_{page}``。
        path: 相对组件 admin 目录的页面路径（如 ``items/index.php``）。
        icon: 图标名称（可选）。
        children: 子菜单（最多一层）。
    """
    title: str
    page: str
    path: str
    icon: Optional[str] = None
    children: List["MenuItem"] = field(default_factory=list)


@dataclass
class MenuLinkResult:
    """创建菜单链接的结果

    Attributes:
        success: 是否成功。菜单系统未安装时为 False（软失败）。
        menu_ids: 新建菜单行的ID，按插入顺序排列。
        skipped: 已存在同前缀的菜单而跳过创建。
        error: 失败原因。
    """
    success: bool
    menu_ids: List[int] = field(default_factory=list)
    skipped: bool = False
    error: Optional[str] = None


@dataclass
class MenuRemovalResult:
    """删除菜单链接的结果"""
    success: bool
    deleted_count: int = 0


@dataclass
class ComponentInfo:
    """已安装组件的注册信息"""
    name: str
    version: Optional[str]
    installed_at: Optional[str]
    tables: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
