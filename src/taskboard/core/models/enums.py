"""枚举定义 -- 任务优先级、分类、排序键与排序方向

包含 Priority、Category、SortKey、SortDirection 枚举，
以及优先级序数映射 PRIORITY_RANK。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级"""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Category(StrEnum):
    """任务分类"""

    WORK = "work"
    PERSONAL = "personal"
    STUDY = "study"
    HOBBY = "hobby"


class SortKey(StrEnum):
    """列表排序键"""

    CREATED_AT = "created_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CATEGORY = "category"


class SortDirection(StrEnum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


# 优先级序数（数值越大越紧急）
PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.NORMAL: 2,
    Priority.LOW: 1,
}


def priority_rank(priority: Priority) -> int:
    """返回优先级的序数值

    Args:
        priority: 优先级

    Returns:
        high=3, normal=2, low=1
    """
    return PRIORITY_RANK[Priority(priority)]
