"""TaskRepository -- 任务仓储

封装记录存储客户端，维护当前用户的内存任务集合（按 created_at 倒序）。

所有写操作遵循 confirm-then-apply：
只有在记录存储确认成功并返回结果行之后才修改本地集合，
因此本地集合始终是已确认服务端状态的子集。失败不重试，本地状态保持不变。
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from .config import TASKS_TABLE
from .exceptions import FetchError, NotFoundError, RecordStoreError, WriteError
from .models import Category, Priority, Task, TaskDraft, TaskPatch
from .store.protocols import RecordStore, Row

log = structlog.get_logger()

# 当前用户解析器：返回已登录用户 ID，未登录返回 None
CurrentUserResolver = Callable[[], Awaitable[str | None]]

# 记录存储中的列（owner_id 对应存储列 user_id）
TASK_COLUMNS: tuple[str, ...] = (
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
)


def _row_to_task(row: Row) -> Task:
    """将存储行转换为 Task 模型"""
    data = dict(row)
    data["owner_id"] = data.pop("user_id")
    # 旧记录可能缺少后加的列
    if data.get("important") is None:
        data["important"] = False
    return Task.model_validate(data)


def _draft_to_row(draft: TaskDraft) -> Row:
    """将 TaskDraft 转换为待插入的存储行"""
    return {
        "user_id": draft.owner_id,
        "text": draft.text,
        "completed": False,
        "priority": draft.priority,
        "category": draft.category,
        "due_date": draft.due_date,
        "important": draft.important,
    }


class TaskRepository:
    """任务仓储

    Args:
        store: 记录存储客户端
        current_user: 当前用户解析器，update / delete 以其结果限定 owner
        table: 任务记录表名
    """

    def __init__(
        self,
        store: RecordStore,
        current_user: CurrentUserResolver,
        table: str = TASKS_TABLE,
    ) -> None:
        self._store = store
        self._current_user = current_user
        self._table = table
        self._tasks: tuple[Task, ...] = ()
        self._owner_id: str | None = None

    @property
    def tasks(self) -> tuple[Task, ...]:
        """本地任务集合快照（每次变更都替换为新元组）"""
        return self._tasks

    @property
    def owner_id(self) -> str | None:
        """本地集合所属用户"""
        return self._owner_id

    def get(self, task_id: str) -> Task | None:
        """从本地集合查找任务"""
        return next((t for t in self._tasks if t.id == task_id), None)

    def clear(self) -> None:
        """清空本地集合（登出）"""
        self._tasks = ()
        self._owner_id = None

    # ---- 查询 ----

    async def list_for_user(self, user_id: str) -> tuple[Task, ...]:
        """拉取用户的全部任务，按 created_at 倒序，并替换本地集合

        Raises:
            FetchError: 记录存储不可达、鉴权失败或返回了无法解析的行
        """
        try:
            rows = await self._store.select(
                self._table,
                eq={"user_id": user_id},
                order_by="created_at",
                descending=True,
                columns=TASK_COLUMNS,
            )
            tasks = tuple(_row_to_task(row) for row in rows)
        except (RecordStoreError, ValidationError) as e:
            await log.awarning("task_list_failed", owner_id=user_id, error=str(e))
            raise FetchError(user_id, e) from e

        self._tasks = tasks
        self._owner_id = user_id
        await log.ainfo("task_list_loaded", owner_id=user_id, count=len(tasks))
        return tasks

    # ---- 写操作 ----

    async def create(self, draft: TaskDraft) -> Task:
        """创建任务，确认后插入本地集合头部

        Raises:
            WriteError: 记录存储拒绝插入
        """
        try:
            row = await self._store.insert(self._table, _draft_to_row(draft))
            task = _row_to_task(row)
        except (RecordStoreError, ValidationError) as e:
            await log.awarning("task_create_failed", owner_id=draft.owner_id, error=str(e))
            raise WriteError("create", original_error=e) from e

        if self._owner_id in (None, task.owner_id):
            self._tasks = (task, *self._tasks)
            self._owner_id = task.owner_id
        await log.ainfo("task_created", task_id=task.id, owner_id=task.owner_id)
        return task

    async def update(self, task_id: str, patch: TaskPatch | dict[str, Any]) -> Task:
        """按 id 部分更新任务，确认后用服务端返回的行替换本地记录

        Args:
            task_id: 任务 ID
            patch: 部分字段，例如 {"completed": True} 或完整编辑字段集

        Raises:
            ValueError: patch 为空或包含不可更新的字段
            NotFoundError: 任务在当前用户下不存在
            WriteError: 记录存储拒绝更新
        """
        if not isinstance(patch, TaskPatch):
            patch = TaskPatch.model_validate(patch)
        changes = patch.changes()
        if not changes:
            raise ValueError("patch 至少需要包含一个字段")

        owner_id = await self._require_owner("update", task_id)
        try:
            row = await self._store.update(
                self._table,
                eq={"id": task_id, "user_id": owner_id},
                values=changes,
            )
            task = _row_to_task(row) if row is not None else None
        except (RecordStoreError, ValidationError) as e:
            await log.awarning("task_update_failed", task_id=task_id, error=str(e))
            raise WriteError("update", task_id=task_id, original_error=e) from e

        if task is None:
            await log.awarning("task_update_not_found", task_id=task_id)
            raise NotFoundError("update", task_id)

        self._tasks = tuple(task if t.id == task_id else t for t in self._tasks)
        await log.ainfo("task_updated", task_id=task_id, fields=sorted(changes))
        return task

    async def delete(self, task_id: str) -> None:
        """按 id 删除任务，确认后从本地集合移除

        Raises:
            NotFoundError: 任务在当前用户下不存在
            WriteError: 记录存储拒绝删除
        """
        owner_id = await self._require_owner("delete", task_id)
        try:
            row = await self._store.delete(
                self._table,
                eq={"id": task_id, "user_id": owner_id},
            )
        except RecordStoreError as e:
            await log.awarning("task_delete_failed", task_id=task_id, error=str(e))
            raise WriteError("delete", task_id=task_id, original_error=e) from e

        if row is None:
            await log.awarning("task_delete_not_found", task_id=task_id)
            raise NotFoundError("delete", task_id)

        self._tasks = tuple(t for t in self._tasks if t.id != task_id)
        await log.ainfo("task_deleted", task_id=task_id)

    # ---- 展示层常用命令 ----

    async def toggle_completed(self, task_id: str) -> Task:
        """切换完成状态"""
        task = self._require_local(task_id)
        return await self.update(task_id, TaskPatch(completed=not task.completed))

    async def toggle_important(self, task_id: str) -> Task:
        """切换重要标记"""
        task = self._require_local(task_id)
        return await self.update(task_id, TaskPatch(important=not task.important))

    async def edit(
        self,
        task_id: str,
        *,
        text: str,
        priority: Priority,
        category: Category,
        due_date: datetime | None,
    ) -> Task:
        """编辑任务内容（完整编辑字段集，due_date=None 清除截止时间）"""
        patch = TaskPatch(text=text, priority=priority, category=category, due_date=due_date)
        return await self.update(task_id, patch)

    # ---- 内部工具 ----

    async def _require_owner(self, operation: str, task_id: str) -> str:
        owner_id = await self._current_user()
        if not owner_id:
            raise WriteError(operation, task_id=task_id, message="未登录，无法修改任务")
        return owner_id

    def _require_local(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise NotFoundError("update", task_id)
        return task
