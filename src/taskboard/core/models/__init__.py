"""taskboard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    PRIORITY_RANK,
    Category,
    Priority,
    SortDirection,
    SortKey,
    priority_rank,
)
from .task import Task, TaskDraft, TaskPatch, as_utc
from .view import DerivedView, Statistics, ViewCriteria

__all__ = [
    # 枚举
    "Priority",
    "Category",
    "SortKey",
    "SortDirection",
    "PRIORITY_RANK",
    "priority_rank",
    # Task
    "Task",
    "TaskDraft",
    "TaskPatch",
    "as_utc",
    # 视图
    "ViewCriteria",
    "Statistics",
    "DerivedView",
]
