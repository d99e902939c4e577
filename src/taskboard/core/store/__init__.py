"""taskboard Core Store -- 记录存储协议与 SQLite 实现

提供工厂函数创建已初始化的 SqliteRecordStore。
"""

from pathlib import Path

import aiosqlite

from .protocols import RecordStore, Row
from .record_store import SqliteRecordStore
from .sqlite_init import init_db


async def create_record_store(db_path: str) -> SqliteRecordStore:
    """创建 SqliteRecordStore

    Args:
        db_path: SQLite 数据库文件路径（":memory:" 表示内存库）

    Returns:
        已完成建表的 SqliteRecordStore 实例
    """
    if db_path != ":memory:":
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return SqliteRecordStore(conn)


__all__ = [
    "RecordStore",
    "Row",
    "SqliteRecordStore",
    "create_record_store",
    "init_db",
]
