"""通用 CRUD 基类。

所有仓库继承 BaseCRUD 获得会话管理与通用查询能力。
方法支持传入外部会话（session 参数），以便调用方把多个操作放进同一事务。
"""
from typing import Optional, List, Dict, Any, Type

from sqlalchemy.orm import Session

from .connection import DatabaseConnection


class BaseCRUD:
    """通用 CRUD 基类。

    Attributes:
        conn: 数据库连接管理器。
    """

    def __init__(self, conn: DatabaseConnection) -> None:
        self.conn = conn

    def _get_session(self) -> Session:
        return self.conn.get_session()

    def _table_exists(self, table_name: str) -> bool:
        return self.conn.table_exists(table_name)

    def get_by_id(self, model: Type, record_id: int,
                  session: Optional[Session] = None) -> Optional[Any]:
        """按主键获取记录。

        Args:
            model: ORM 模型类。
            record_id: 主键值。
            session: 外部会话（可选）。

        Returns:
            ORM 对象，不存在则返回 None。
        """
        if session:
            return session.get(model, record_id)

        with self._get_session() as sess:
            return sess.get(model, record_id)

    def get_all(self, model: Type,
                filters: Optional[Dict[str, Any]] = None,
                order_by: Optional[Any] = None,
                session: Optional[Session] = None) -> List[Any]:
        """获取全部记录，可按字段等值过滤。

        Args:
            model: ORM 模型类。
            filters: 字段名到值的等值过滤条件。
            order_by: 排序表达式（可选）。
            session: 外部会话（可选）。

        Returns:
            ORM 对象列表。
        """
        def _query(sess):
            query = sess.query(model)
            if filters:
                query = query.filter_by(**filters)
            if order_by is not None:
                query = query.order_by(order_by)
            return query.all()

        if session:
            return _query(session)

        with self._get_session() as sess:
            return _query(sess)
