"""参数仓库 —— 组件的 section/key/value 配置存储。

每个组件一张 ``{component}_parameters`` 表，以 ``(section, parameter_name)``
为唯一键。存储层只保存文本，不做类型转换；显示类型（value_type）在首次
写入时确定并随记录保存，后台据此选择输入控件。
"""
import re
from datetime import datetime
from typing import Optional, List, Dict, Any, Union

from loguru import logger
from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError

from .base_crud import BaseCRUD
from .connection import DatabaseConnection
from .models import build_component_tables
from .types import ParameterRecord, DefaultsResult, ValueType

_NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


def is_numeric(value: Any) -> bool:
    """判断字符串是否为数字（整数、小数或科学计数法）。"""
    return value is not None and bool(_NUMERIC.match(str(value)))


def infer_value_type(parameter_name: str, value: Any) -> ValueType:
    """按命名约定推断参数的显示类型。

    旧数据没有 value_type 字段，后台页面靠约定判断控件类型：
    - 参数名包含 ``enabled`` / ``require``，或值为 ``yes`` / ``no`` → 开关
    - 值为数字 → 数字输入框
    - 其他 → 文本

    仅在参数首次写入且未显式指定类型时使用。
    """
    name = (parameter_name or "").lower()
    text = "" if value is None else str(value).strip().lower()
    if "enabled" in name or "require" in name or text in ("yes", "no"):
        return ValueType.BOOLEAN
    if is_numeric(value):
        return ValueType.NUMBER
    return ValueType.TEXT


def validate_range(record: ParameterRecord, value: str) -> Optional[str]:
    """校验数值是否落在参数的 min_range/max_range 之内。

    Returns:
        错误信息；校验通过或参数没有范围限制时返回 None。
    """
    if record.min_range is None and record.max_range is None:
        return None
    if not is_numeric(value):
        return f"{record.parameter_name}: Value must be a number"
    number = float(value)
    if record.min_range is not None and number < record.min_range:
        return (f"{record.parameter_name}: Value must be at least "
                f"{record.min_range:g}")
    if record.max_range is not None and number > record.max_range:
        return (f"{record.parameter_name}: Value must be at most "
                f"{record.max_range:g}")
    return None


class ParameterRepository(BaseCRUD):
    """组件参数 仓库。

    Example::

        params = ParameterRepository(conn, "widgets")
        params.set_parameter("Display", "color", "blue")
        params.get_parameter("Display", "color", "red")   # -> "blue"
        params.get_parameter("Queue", "batch_size", "50") # -> "50"
    """

    def __init__(self, conn: DatabaseConnection, component: str) -> None:
        super().__init__(conn)
        self.component = component
        self.table = build_component_tables(component).parameters

    @property
    def table_name(self) -> str:
        return self.table.name

    def _to_record(self, row) -> ParameterRecord:
        if row.value_type:
            value_type = ValueType(row.value_type)
        else:
            value_type = infer_value_type(row.parameter_name, row.value)
        return ParameterRecord(
            id=row.id,
            section=row.section,
            parameter_name=row.parameter_name,
            value=row.value if row.value is not None else "",
            value_type=value_type,
            description=row.description,
            min_range=row.min_range,
            max_range=row.max_range,
            updated_at=row.updated_at,
        )

    def get_parameter(self, section: str, parameter_name: str,
                      default: Optional[str] = None) -> Optional[str]:
        """读取参数值。

        Args:
            section: 分组名称。
            parameter_name: 参数名。
            default: 参数不存在时的返回值，原样返回，不做类型转换。

        Returns:
            参数值（文本），不存在时返回 default。
        """
        if not self._table_exists(self.table_name):
            return default
        t = self.table
        with self._get_session() as session:
            row = session.execute(
                select(t.c.value).where(
                    t.c.section == section,
                    t.c.parameter_name == parameter_name
                )
            ).first()
        if row is None:
            return default
        return row.value

    def get_record(self, section: str,
                   parameter_name: str) -> Optional[ParameterRecord]:
        """读取完整的参数记录，不存在返回 None。"""
        if not self._table_exists(self.table_name):
            return None
        t = self.table
        with self._get_session() as session:
            row = session.execute(
                select(t).where(
                    t.c.section == section,
                    t.c.parameter_name == parameter_name
                )
            ).first()
        return self._to_record(row) if row is not None else None

    def set_parameter(self, section: str, parameter_name: str, value: Any,
                      description: Optional[str] = None,
                      value_type: Optional[Union[ValueType, str]] = None,
                      min_range: Optional[float] = None,
                      max_range: Optional[float] = None) -> bool:
        """写入参数（存在则更新，否则创建）。

        更新时只覆盖显式传入的字段：description、value_type、范围为 None
        时保留原值。创建时未指定 value_type 则按命名约定推断一次。

        Args:
            section: 分组名称。
            parameter_name: 参数名。
            value: 参数值，按文本保存。
            description: 说明文字（可选）。
            value_type: 显示类型（可选）。
            min_range: 数值下限（可选）。
            max_range: 数值上限（可选）。

        Returns:
            是否写入成功。参数表不存在时返回 False。
        """
        if not self._table_exists(self.table_name):
            logger.warning(
                f"{self.table_name} does not exist, cannot set "
                f"{section}.{parameter_name}"
            )
            return False

        text_value = "" if value is None else str(value)
        if value_type is not None:
            value_type = ValueType(value_type)
        now = datetime.utcnow()
        t = self.table

        with self._get_session() as session:
            existing = session.execute(
                select(t.c.id).where(
                    t.c.section == section,
                    t.c.parameter_name == parameter_name
                )
            ).first()

            if existing:
                values: Dict[str, Any] = {
                    "value": text_value, "updated_at": now
                }
                if description is not None:
                    values["description"] = description
                if value_type is not None:
                    values["value_type"] = value_type.value
                if min_range is not None:
                    values["min_range"] = min_range
                if max_range is not None:
                    values["max_range"] = max_range
                session.execute(
                    t.update().where(t.c.id == existing.id).values(**values)
                )
            else:
                if value_type is None:
                    value_type = infer_value_type(parameter_name, text_value)
                session.execute(t.insert().values(
                    section=section,
                    parameter_name=parameter_name,
                    value=text_value,
                    value_type=value_type.value,
                    description=description,
                    min_range=min_range,
                    max_range=max_range,
                    created_at=now,
                    updated_at=now,
                ))
            session.commit()
        return True

    def list_parameters(self, section: Optional[str] = None,
                        search: Optional[str] = None) -> List[ParameterRecord]:
        """列出参数，按 section、parameter_name 排序。

        不分页：组件参数数量很小，后台设置页一次性展示全部。

        Args:
            section: 只列出该分组（可选）。
            search: 在参数名与说明中模糊搜索（可选）。

        Returns:
            ParameterRecord 列表。
        """
        if not self._table_exists(self.table_name):
            return []
        t = self.table
        query = select(t)
        if section:
            query = query.where(t.c.section == section)
        if search:
            query = query.where(or_(
                t.c.parameter_name.contains(search, autoescape=True),
                t.c.description.contains(search, autoescape=True),
            ))
        query = query.order_by(t.c.section, t.c.parameter_name)

        with self._get_session() as session:
            rows = session.execute(query).all()
        return [self._to_record(row) for row in rows]

    def get_sections(self) -> List[str]:
        """获取全部分组名称（去重、排序）。"""
        if not self._table_exists(self.table_name):
            return []
        t = self.table
        with self._get_session() as session:
            rows = session.execute(
                select(t.c.section).distinct().order_by(t.c.section)
            ).all()
        return [row.section for row in rows]

    def delete_parameter(self, section: str, parameter_name: str) -> bool:
        """删除参数。

        Returns:
            是否删除了记录。
        """
        if not self._table_exists(self.table_name):
            return False
        t = self.table
        with self._get_session() as session:
            result = session.execute(t.delete().where(
                t.c.section == section,
                t.c.parameter_name == parameter_name
            ))
            deleted = result.rowcount
            session.commit()
        return deleted > 0

    def insert_defaults(self, defaults: List[Dict[str, Any]]) -> DefaultsResult:
        """写入组件的默认参数（逐条 upsert）。

        单条失败不会中断其余参数的写入，失败信息收集到 errors 中。

        Args:
            defaults: 参数字典列表，支持以下键：
                - section: 分组名称（必填）
                - parameter_name: 参数名（必填）
                - value: 默认值（必填）
                - description: 说明（可选）
                - value_type: 显示类型（可选）
                - min_range / max_range: 数值范围（可选）

        Returns:
            DefaultsResult。
        """
        inserted = 0
        errors: List[str] = []
        for param in defaults:
            name = param.get("parameter_name")
            try:
                ok = self.set_parameter(
                    param["section"], param["parameter_name"],
                    param.get("value", ""),
                    description=param.get("description"),
                    value_type=param.get("value_type"),
                    min_range=param.get("min_range"),
                    max_range=param.get("max_range"),
                )
            except KeyError as e:
                errors.append(f"Error inserting parameter {name}: "
                              f"missing key {e}")
                continue
            except (SQLAlchemyError, ValueError) as e:
                errors.append(f"Error inserting parameter {name}: {e}")
                continue
            if ok:
                inserted += 1
            else:
                errors.append(f"Failed to insert parameter: {name}")

        return DefaultsResult(success=not errors, inserted=inserted,
                              errors=errors)
