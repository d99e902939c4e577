"""全局 pytest 配置 -- 临时 SQLite 记录存储 + 任务仓储 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from taskboard.core.models import Category, Priority, Task
from taskboard.core.repository import TaskRepository
from taskboard.core.store import SqliteRecordStore, create_record_store


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def record_store(tmp_db_path: Path) -> AsyncGenerator[SqliteRecordStore, None]:
    """提供已初始化的临时记录存储"""
    store = await create_record_store(str(tmp_db_path))
    yield store
    await store.close()


@pytest.fixture
def current_user() -> dict[str, str | None]:
    """可变的当前用户，测试中可切换登录状态"""
    return {"user_id": "user-1"}


@pytest_asyncio.fixture
async def repo(record_store: SqliteRecordStore, current_user) -> TaskRepository:
    """提供绑定 user-1 的任务仓储"""

    async def resolve_user() -> str | None:
        return current_user["user_id"]

    return TaskRepository(record_store, resolve_user)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造内存 Task（不落库）"""
    counter = 0

    def _make(
        text: str = "task",
        *,
        created_at: datetime | str | None = None,
        priority: Priority = Priority.NORMAL,
        category: Category = Category.PERSONAL,
        completed: bool = False,
        important: bool = False,
        due_date: datetime | None = None,
        owner_id: str = "user-1",
    ) -> Task:
        nonlocal counter
        counter += 1
        return Task(
            id=f"TSK{counter:03d}",
            owner_id=owner_id,
            text=text,
            completed=completed,
            priority=priority,
            category=category,
            due_date=due_date,
            important=important,
            created_at=created_at or datetime(2024, 1, 1, tzinfo=UTC),
        )

    return _make
