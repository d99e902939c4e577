"""RecordStore SQLite 实现

通用 filter / order / select / insert / update / delete 协议的本地实现。
存储端负责分配 id（ULID）与 created_at，并在每次 update 时写入 updated_at。
表名与列名只允许来自 TABLE_COLUMNS，避免标识符注入。
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import RecordStoreError
from .protocols import Row
from .sqlite_init import BOOL_COLUMNS, TABLE_COLUMNS

log = structlog.get_logger()


def _encode(value: Any) -> Any:
    """Python 值 -> SQLite 存储值"""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat(timespec="microseconds")
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _decode(row: aiosqlite.Row) -> Row:
    """SQLite 行 -> dict（布尔列还原为 bool，时间保持 ISO 字符串）"""
    data = dict(row)
    for name in BOOL_COLUMNS:
        if data.get(name) is not None:
            data[name] = bool(data[name])
    return data


class SqliteRecordStore:
    """RecordStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = aiosqlite.Row

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    async def close(self) -> None:
        await self._conn.close()

    # ---- 协议方法 ----

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
        allowed = self._columns(table)
        eq = eq or {}
        self._check_columns(table, allowed, [*eq.keys(), *(columns or [])])

        select_list = ", ".join(columns) if columns else "*"
        sql = f"SELECT {select_list} FROM {table}"
        where, params = self._where(eq)
        sql += where
        if order_by is not None:
            self._check_columns(table, allowed, [order_by])
            direction = "DESC" if descending else "ASC"
            # rowid 兜底，同一时间戳内保持插入顺序
            sql += f" ORDER BY {order_by} {direction}, rowid {direction}"

        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            log.error("record_select_failed", table=table, error=str(e))
            raise RecordStoreError(f"查询 {table} 失败: {e}", original_error=e) from e
        return [_decode(row) for row in rows]

    async def insert(self, table: str, values: Row) -> Row:
        """插入一行，返回含 id / created_at 的完整行"""
        allowed = self._columns(table)
        record = {k: v for k, v in values.items() if k not in ("id", "created_at")}
        record["id"] = str(ULID())
        record["created_at"] = datetime.now(UTC)
        if "completed" in allowed:
            record.setdefault("completed", False)
        self._check_columns(table, allowed, record.keys())

        names = ", ".join(record)
        placeholders = ", ".join("?" for _ in record)
        sql = f"INSERT INTO {table} ({names}) VALUES ({placeholders}) RETURNING *"
        return await self._write_returning(
            "insert", table, sql, [_encode(v) for v in record.values()]
        )

    async def update(self, table: str, *, eq: dict[str, Any], values: Row) -> Row | None:
        """按条件更新，返回更新后的行；未命中返回 None"""
        allowed = self._columns(table)
        if not values:
            raise RecordStoreError(f"更新 {table} 时没有任何字段")
        record = dict(values)
        if "updated_at" in allowed:
            record["updated_at"] = datetime.now(UTC)
        self._check_columns(table, allowed, [*eq.keys(), *record.keys()])

        assignments = ", ".join(f"{name} = ?" for name in record)
        where, where_params = self._where(eq)
        sql = f"UPDATE {table} SET {assignments}{where} RETURNING *"
        params = [_encode(v) for v in record.values()] + where_params
        return await self._write_returning("update", table, sql, params)

    async def delete(self, table: str, *, eq: dict[str, Any]) -> Row | None:
        """按条件删除，返回被删除的行；未命中返回 None"""
        allowed = self._columns(table)
        self._check_columns(table, allowed, eq.keys())
        if not eq:
            # 无条件删除不属于单条记录协议
            raise RecordStoreError(f"拒绝无条件删除 {table}")

        where, params = self._where(eq)
        sql = f"DELETE FROM {table}{where} RETURNING *"
        return await self._write_returning("delete", table, sql, params)

    # ---- 内部工具 ----

    async def _write_returning(
        self, operation: str, table: str, sql: str, params: list[Any]
    ) -> Row | None:
        """执行带 RETURNING 的写语句并提交；失败时回滚"""
        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            log.error(
                "record_write_failed",
                operation=operation,
                table=table,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RecordStoreError(f"{operation} {table} 失败: {e}", original_error=e) from e
        return _decode(rows[0]) if rows else None

    @staticmethod
    def _columns(table: str) -> frozenset[str]:
        try:
            return TABLE_COLUMNS[table]
        except KeyError:
            raise RecordStoreError(f"未知的表: {table}") from None

    @staticmethod
    def _check_columns(table: str, allowed: frozenset[str], names) -> None:
        unknown = sorted(set(names) - allowed)
        if unknown:
            raise RecordStoreError(f"表 {table} 不存在列: {', '.join(unknown)}")

    @staticmethod
    def _where(eq: dict[str, Any]) -> tuple[str, list[Any]]:
        if not eq:
            return "", []
        clause = " AND ".join(f"{name} = ?" for name in eq)
        return f" WHERE {clause}", [_encode(v) for v in eq.values()]
