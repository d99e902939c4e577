"""视图派生 -- 筛选 + 排序 + 统计

纯函数，无副作用，可重入；每次状态变化都可直接重新计算。
ViewMemo 只是可选的性能优化，不承担正确性。
"""

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from functools import cmp_to_key

from .models import (
    Category,
    DerivedView,
    Priority,
    SortDirection,
    SortKey,
    Statistics,
    Task,
    ViewCriteria,
    as_utc,
    priority_rank,
)


def matches(task: Task, criteria: ViewCriteria) -> bool:
    """五个谓词同时成立时任务可见"""
    if criteria.search and criteria.search.casefold() not in task.text.casefold():
        return False
    if criteria.category is not None and task.category != criteria.category:
        return False
    if criteria.priority is not None and task.priority != criteria.priority:
        return False
    if not criteria.show_completed and task.completed:
        return False
    if criteria.only_important and not task.important:
        return False
    return True


def _sort_value(task: Task, key: SortKey):
    if key == SortKey.CREATED_AT:
        return task.created_at
    if key == SortKey.CATEGORY:
        return task.category.value
    if key == SortKey.PRIORITY:
        return priority_rank(task.priority)
    # 无截止时间视为 +inf
    if task.due_date is None:
        return math.inf
    return task.due_date.timestamp()


def _compare(a, b) -> int:
    return (a > b) - (a < b)


def sort_tasks(
    tasks: Iterable[Task],
    key: SortKey = SortKey.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> list[Task]:
    """稳定排序

    方向只翻转比较结果的符号；相等的元素在两个方向上都保持输入顺序。
    due_date 缺失按 +inf 处理：升序排在最后，降序排在最前。
    """
    sign = -1 if direction == SortDirection.DESC else 1

    def comparator(a: Task, b: Task) -> int:
        return sign * _compare(_sort_value(a, key), _sort_value(b, key))

    return sorted(tasks, key=cmp_to_key(comparator))


def filter_and_sort(tasks: Iterable[Task], criteria: ViewCriteria) -> tuple[Task, ...]:
    """按条件筛选后排序"""
    visible = [task for task in tasks if matches(task, criteria)]
    return tuple(sort_tasks(visible, criteria.sort_key, criteria.sort_direction))


def compute_statistics(tasks: Iterable[Task], now: datetime | None = None) -> Statistics:
    """单次遍历全量（未筛选）任务集合计算统计

    Args:
        tasks: 全量任务
        now: 逾期判定基准时间；一次计算只捕获一次
    """
    now = as_utc(now) if now is not None else datetime.now(UTC)
    total = completed = overdue = important = 0
    by_category = {category: 0 for category in Category}
    by_priority = {priority: 0 for priority in Priority}

    for task in tasks:
        total += 1
        if task.completed:
            completed += 1
        elif task.is_overdue(now):
            overdue += 1
        if task.important:
            important += 1
        by_category[task.category] += 1
        by_priority[task.priority] += 1

    return Statistics(
        total=total,
        completed=completed,
        overdue=overdue,
        important=important,
        by_category=by_category,
        by_priority=by_priority,
    )


def derive_view(
    tasks: Sequence[Task],
    criteria: ViewCriteria | None = None,
    now: datetime | None = None,
) -> DerivedView:
    """计算派生视图：可见任务列表 + 全量统计"""
    criteria = criteria or ViewCriteria()
    return DerivedView(
        visible_tasks=filter_and_sort(tasks, criteria),
        statistics=compute_statistics(tasks, now),
    )


class ViewMemo:
    """可见列表的单条目缓存，键为 (任务集合对象身份, criteria)

    仓储每次变更都会替换任务元组，因此对象身份变化即意味着内容可能变化。
    只缓存与时间无关的 visible_tasks；统计含逾期数，每次调用都重新计算。
    """

    def __init__(self) -> None:
        self._key: tuple[int, ViewCriteria] | None = None
        self._tasks: Sequence[Task] | None = None
        self._visible: tuple[Task, ...] | None = None

    def visible(self, tasks: Sequence[Task], criteria: ViewCriteria) -> tuple[Task, ...]:
        """筛选排序结果，输入未变时复用"""
        key = (id(tasks), criteria)
        if self._visible is None or self._key != key or self._tasks is not tasks:
            self._visible = filter_and_sort(tasks, criteria)
            self._key = key
            # 持有引用，防止 id 被复用
            self._tasks = tasks
        return self._visible

    def derive(
        self,
        tasks: Sequence[Task],
        criteria: ViewCriteria,
        now: datetime | None = None,
    ) -> DerivedView:
        return DerivedView(
            visible_tasks=self.visible(tasks, criteria),
            statistics=compute_statistics(tasks, now),
        )

    def invalidate(self) -> None:
        self._key = None
        self._tasks = None
        self._visible = None
