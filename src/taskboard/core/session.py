"""TaskBoard -- 展示层与核心之间的会话胶水

职责：
1. 身份边界：解析当前用户；未登录视为"没有数据"，不是错误
2. 登录 / 登出切换时重新拉取或清空任务
3. 持有不可变的 ViewCriteria，提供 view() 派生视图
4. 把仓储的类型化失败转换为一条可读通知，本地状态保持不变
"""

from collections.abc import Callable
from datetime import datetime

import structlog

from .derivation import ViewMemo
from .exceptions import NotFoundError, TaskboardError
from .logging_config import bind_user_context
from .models import Category, DerivedView, Priority, Task, TaskDraft, ViewCriteria
from .repository import CurrentUserResolver, TaskRepository

log = structlog.get_logger()

# 通知回调：接收一条面向用户的可读消息
Notifier = Callable[[str], None]


def _log_notifier(message: str) -> None:
    log.warning("user_notification", message=message)


class TaskBoard:
    """单用户任务面板

    Args:
        repository: 任务仓储
        resolve_user: 当前用户解析器
        notify: 失败通知回调，默认写 structlog warning
    """

    def __init__(
        self,
        repository: TaskRepository,
        resolve_user: CurrentUserResolver,
        notify: Notifier | None = None,
    ) -> None:
        self._repo = repository
        self._resolve_user = resolve_user
        self._notify = notify or _log_notifier
        self._criteria = ViewCriteria()
        self._memo = ViewMemo()

    @property
    def criteria(self) -> ViewCriteria:
        return self._criteria

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._repo.tasks

    def set_criteria(self, **changes) -> ViewCriteria:
        """替换筛选 / 排序条件（返回新的不可变值）"""
        self._criteria = ViewCriteria.model_validate({**self._criteria.model_dump(), **changes})
        return self._criteria

    def reset_criteria(self) -> ViewCriteria:
        self._criteria = ViewCriteria()
        return self._criteria

    def view(self, now: datetime | None = None) -> DerivedView:
        """当前任务集合在当前条件下的派生视图"""
        return self._memo.derive(self._repo.tasks, self._criteria, now)

    # ---- 身份边界 ----

    async def refresh(self) -> tuple[Task, ...]:
        """按当前用户重新拉取；未登录时清空本地数据"""
        user_id = await self._resolve_user()
        return await self.on_auth_change(user_id)

    async def on_auth_change(self, user_id: str | None) -> tuple[Task, ...]:
        """登录 / 登出切换：登录时重新拉取，登出时清空"""
        bind_user_context(user_id)
        if not user_id:
            self._repo.clear()
            await log.ainfo("task_board_signed_out")
            return ()
        if user_id != self._repo.owner_id:
            # 切换用户时先清空上一个用户的集合
            self._repo.clear()
        try:
            return await self._repo.list_for_user(user_id)
        except TaskboardError as e:
            self._report(e)
            return ()

    # ---- 命令 ----

    async def add(
        self,
        text: str,
        *,
        priority: Priority = Priority.NORMAL,
        category: Category = Category.PERSONAL,
        due_date: datetime | None = None,
        important: bool = False,
    ) -> Task | None:
        """新增任务；空白文本直接忽略"""
        text = text.strip()
        if not text:
            return None
        user_id = await self._resolve_user()
        if not user_id:
            self._notify("请先登录")
            return None
        draft = TaskDraft(
            owner_id=user_id,
            text=text,
            priority=priority,
            category=category,
            due_date=due_date,
            important=important,
        )
        try:
            return await self._repo.create(draft)
        except TaskboardError as e:
            self._report(e)
            return None

    async def toggle(self, task_id: str) -> Task | None:
        try:
            return await self._repo.toggle_completed(task_id)
        except TaskboardError as e:
            self._report(e)
            return None

    async def toggle_important(self, task_id: str) -> Task | None:
        try:
            return await self._repo.toggle_important(task_id)
        except TaskboardError as e:
            self._report(e)
            return None

    async def edit(
        self,
        task_id: str,
        *,
        text: str,
        priority: Priority,
        category: Category,
        due_date: datetime | None = None,
    ) -> Task | None:
        """保存编辑；空白文本直接忽略"""
        text = text.strip()
        if not text:
            return None
        try:
            return await self._repo.edit(
                task_id,
                text=text,
                priority=priority,
                category=category,
                due_date=due_date,
            )
        except TaskboardError as e:
            self._report(e)
            return None

    async def remove(self, task_id: str) -> bool:
        try:
            await self._repo.delete(task_id)
        except TaskboardError as e:
            self._report(e)
            return False
        return True

    def _report(self, error: TaskboardError) -> None:
        """每次失败只发一条通知"""
        if isinstance(error, NotFoundError):
            message = "任务已不存在，请刷新列表"
        else:
            message = error.message
        self._notify(message)
