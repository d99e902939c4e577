"""SQLite 数据库初始化

PRAGMA 配置 + todos 表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# todos 表 DDL
_TODOS_DDL = """
CREATE TABLE IF NOT EXISTS todos (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    text        TEXT NOT NULL,
    completed   INTEGER NOT NULL DEFAULT 0,
    priority    TEXT NOT NULL DEFAULT 'normal'
                CHECK (priority IN ('low', 'normal', 'high')),
    category    TEXT NOT NULL DEFAULT 'personal'
                CHECK (category IN ('work', 'personal', 'study', 'hobby')),
    due_date    TEXT,
    important   INTEGER NOT NULL DEFAULT 0,
    created_at  TEXT NOT NULL,
    updated_at  TEXT
);
"""

_TODOS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_todos_user_created ON todos(user_id, created_at DESC);",
]

# 每张表允许出现在 SQL 中的列名（过滤 / 排序 / 选择 / 写入）
TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "todos": frozenset(
        {
            "id",
            "user_id",
            "text",
            "completed",
            "priority",
            "category",
            "due_date",
            "important",
            "created_at",
            "updated_at",
        }
    ),
}

# 以 INTEGER 存储的布尔列
BOOL_COLUMNS: frozenset[str] = frozenset({"completed", "important"})


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TODOS_DDL)
    for idx_sql in _TODOS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()
