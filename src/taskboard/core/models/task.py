"""Task Domain Model -- 单用户待办任务

Task 是记录存储中按 owner 隔离的一行记录：
id / owner_id / created_at 由创建时确定，此后不可变；
overdue 是派生属性，只在求值时计算，从不落库。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import Category, Priority


def as_utc(value: datetime | None) -> datetime | None:
    """naive datetime 视为 UTC，保证所有时间戳可相互比较"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Task(BaseModel):
    """Task 数据模型

    id 与 created_at 由记录存储在插入时分配。
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="唯一标识，由记录存储分配")
    owner_id: str = Field(description="所属用户 ID")
    text: str = Field(description="任务内容")
    completed: bool = Field(default=False, description="是否已完成")
    priority: Priority = Field(default=Priority.NORMAL, description="优先级")
    category: Category = Field(default=Category.PERSONAL, description="分类")
    due_date: datetime | None = Field(default=None, description="截止时间，None 表示无期限")
    important: bool = Field(default=False, description="是否标记为重要")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime | None = Field(default=None, description="最近一次更新时间")

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def is_overdue(self, now: datetime | None = None) -> bool:
        """有截止时间、已过期且未完成 -> 逾期"""
        if self.due_date is None or self.completed:
            return False
        now = as_utc(now) if now is not None else datetime.now(UTC)
        return self.due_date < now


class TaskDraft(BaseModel):
    """创建任务的输入（id / created_at 由记录存储分配）"""

    owner_id: str = Field(description="所属用户 ID")
    text: str = Field(description="任务内容")
    priority: Priority = Field(default=Priority.NORMAL, description="优先级")
    category: Category = Field(default=Category.PERSONAL, description="分类")
    due_date: datetime | None = Field(default=None, description="截止时间")
    important: bool = Field(default=False, description="是否重要")

    @field_validator("due_date")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskPatch(BaseModel):
    """任务的部分字段更新

    只有显式设置的字段会被写入；due_date 显式传 None 表示清除截止时间。
    id / owner_id / created_at 不在可更新字段之列。
    """

    model_config = ConfigDict(extra="forbid")

    text: str | None = None
    completed: bool | None = None
    important: bool | None = None
    priority: Priority | None = None
    category: Category | None = None
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @model_validator(mode="after")
    def _reject_null_fields(self) -> "TaskPatch":
        for name in self.model_fields_set:
            if name != "due_date" and getattr(self, name) is None:
                raise ValueError(f"{name} 不能置空")
        return self

    def changes(self) -> dict[str, Any]:
        """返回显式设置的字段"""
        return {name: getattr(self, name) for name in self.model_fields_set}
