"""视图模型 -- 筛选/排序条件、统计结果与派生视图

ViewCriteria 是不可变值，显式传入 derive_view()，不依赖任何共享状态。
Statistics / DerivedView 每次按需重新计算，不持久化。
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import Category, Priority, SortDirection, SortKey
from .task import Task


class ViewCriteria(BaseModel):
    """筛选 + 排序条件（不可变、可哈希）

    默认值：显示已完成任务，按创建时间倒序。
    """

    model_config = ConfigDict(frozen=True)

    category: Category | None = Field(default=None, description="分类筛选，None 表示不筛选")
    priority: Priority | None = Field(default=None, description="优先级筛选，None 表示不筛选")
    show_completed: bool = Field(default=True, description="是否显示已完成任务")
    only_important: bool = Field(default=False, description="是否只显示重要任务")
    search: str = Field(default="", description="文本搜索词（不区分大小写的子串匹配）")
    sort_key: SortKey = Field(default=SortKey.CREATED_AT, description="排序键")
    sort_direction: SortDirection = Field(default=SortDirection.DESC, description="排序方向")


def _zero_by_category() -> dict[Category, int]:
    return {category: 0 for category in Category}


def _zero_by_priority() -> dict[Priority, int]:
    return {priority: 0 for priority in Priority}


class Statistics(BaseModel):
    """任务汇总统计

    不变量：
    - sum(by_category) == total
    - sum(by_priority) == total
    - completed <= total
    - overdue <= total - completed
    """

    total: int = Field(default=0, ge=0, description="任务总数")
    completed: int = Field(default=0, ge=0, description="已完成数")
    overdue: int = Field(default=0, ge=0, description="逾期数（不含已完成）")
    important: int = Field(default=0, ge=0, description="重要任务数")
    by_category: dict[Category, int] = Field(
        default_factory=_zero_by_category, description="按分类计数"
    )
    by_priority: dict[Priority, int] = Field(
        default_factory=_zero_by_priority, description="按优先级计数"
    )

    @computed_field
    @property
    def active(self) -> int:
        """未完成数"""
        return self.total - self.completed

    @computed_field
    @property
    def completion_percent(self) -> int:
        """完成百分比（四舍五入取整），total == 0 时为 0"""
        if self.total == 0:
            return 0
        return round(self.completed * 100 / self.total)


class DerivedView(BaseModel):
    """派生视图：可见任务列表 + 统计"""

    model_config = ConfigDict(frozen=True)

    visible_tasks: tuple[Task, ...] = Field(default=(), description="筛选排序后的任务")
    statistics: Statistics = Field(default_factory=Statistics, description="全量统计")
