"""Store Protocol 接口定义

记录存储是外部协作者：按用户隔离的远程记录集合，
通过通用的 filter / order / select / insert / update / delete 协议访问。
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from collections.abc import Sequence
from typing import Any, Protocol

Row = dict[str, Any]


class RecordStore(Protocol):
    """记录存储客户端接口

    约定：
    - 每个写操作要么返回结果行，要么抛出 RecordStoreError，不存在静默的部分成功
    - update / delete 未命中任何行时返回 None
    """

    async def select(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        columns: Sequence[str] | None = None,
    ) -> list[Row]:
        """等值筛选 + 排序 + 字段子集查询"""
        ...

    async def insert(self, table: str, values: Row) -> Row:
        """插入一行并返回存储端生成的完整行（含 id / created_at）"""
        ...

    async def update(self, table: str, *, eq: dict[str, Any], values: Row) -> Row | None:
        """按条件更新并返回更新后的行；未命中返回 None"""
        ...

    async def delete(self, table: str, *, eq: dict[str, Any]) -> Row | None:
        """按条件删除并返回被删除的行；未命中返回 None"""
        ...
