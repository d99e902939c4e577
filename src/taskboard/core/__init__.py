"""taskboard Core -- 任务仓储 + 视图派生

展示层消费的全部接口：TaskRepository 的 list_for_user / create / update / delete，
以及纯函数 derive_view(tasks, criteria)。
"""

from .derivation import compute_statistics, derive_view, filter_and_sort, sort_tasks
from .exceptions import FetchError, NotFoundError, TaskboardError, WriteError
from .repository import TaskRepository
from .session import TaskBoard

__all__ = [
    "TaskRepository",
    "TaskBoard",
    "derive_view",
    "filter_and_sort",
    "sort_tasks",
    "compute_statistics",
    "TaskboardError",
    "FetchError",
    "WriteError",
    "NotFoundError",
]
