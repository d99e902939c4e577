"""CLI 入口模块 -- python -m taskboard.core <command>

支持的命令：
  list <user_id> [--sort KEY] [--asc|--desc]  列出任务
  stats <user_id>                             输出统计
  add <user_id> <text>                        新增任务（默认优先级/分类）
"""

import asyncio
import sys

from .config import get_db_path
from .derivation import derive_view
from .exceptions import TaskboardError
from .logging_config import setup_logging
from .models import SortDirection, SortKey, Task, TaskDraft, ViewCriteria

USAGE = """用法: python -m taskboard.core <command>
命令:
  list <user_id> [--sort KEY] [--asc|--desc]  列出任务（KEY: created_at/due_date/priority/category）
  stats <user_id>                             输出统计
  add <user_id> <text>                        新增任务"""


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回退出码"""
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2:
        print(USAGE)
        return 1

    command, user_id, rest = args[0], args[1], args[2:]
    setup_logging(user_id)

    try:
        if command == "list":
            criteria = _parse_list_options(rest)
            asyncio.run(list_tasks(user_id, criteria))
        elif command == "stats":
            asyncio.run(print_stats(user_id))
        elif command == "add":
            if not rest or not " ".join(rest).strip():
                print("缺少任务内容")
                return 1
            asyncio.run(add_task(user_id, " ".join(rest)))
        else:
            print(f"未知命令: {command}")
            print("可用命令: list, stats, add")
            return 1
    except ValueError as e:
        print(f"参数错误: {e}")
        return 1
    except TaskboardError as e:
        print(f"操作失败: {e.message}")
        return 2
    return 0


def _parse_list_options(options: list[str]) -> ViewCriteria:
    sort_key = SortKey.CREATED_AT
    direction = SortDirection.DESC
    it = iter(options)
    for opt in it:
        if opt == "--sort":
            sort_key = SortKey(next(it, ""))
        elif opt == "--asc":
            direction = SortDirection.ASC
        elif opt == "--desc":
            direction = SortDirection.DESC
        else:
            raise ValueError(f"未知选项 {opt}")
    return ViewCriteria(sort_key=sort_key, sort_direction=direction)


def _format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    star = "*" if task.important else ""
    due = f" due={task.due_date.date().isoformat()}" if task.due_date else ""
    return f"[{mark}] {task.text}{star} ({task.priority}/{task.category}){due}  id={task.id}"


async def _open_repository(user_id: str):
    from .repository import TaskRepository
    from .store import create_record_store

    store = await create_record_store(get_db_path())

    async def resolve_user() -> str | None:
        return user_id

    return store, TaskRepository(store, resolve_user)


async def list_tasks(user_id: str, criteria: ViewCriteria) -> None:
    """列出派生视图中的任务"""
    store, repo = await _open_repository(user_id)
    try:
        tasks = await repo.list_for_user(user_id)
        view = derive_view(tasks, criteria)
        if not view.visible_tasks:
            print("没有任务")
        for task in view.visible_tasks:
            print(_format_task(task))
    finally:
        await store.close()


async def print_stats(user_id: str) -> None:
    """输出统计"""
    store, repo = await _open_repository(user_id)
    try:
        tasks = await repo.list_for_user(user_id)
        stats = derive_view(tasks).statistics
        print(f"总数: {stats.total}")
        print(f"已完成: {stats.completed} ({stats.completion_percent}%)")
        print(f"逾期: {stats.overdue}")
        print(f"重要: {stats.important}")
        print("分类: " + ", ".join(f"{k}={v}" for k, v in stats.by_category.items()))
        print("优先级: " + ", ".join(f"{k}={v}" for k, v in stats.by_priority.items()))
    finally:
        await store.close()


async def add_task(user_id: str, text: str) -> None:
    """新增任务"""
    store, repo = await _open_repository(user_id)
    try:
        task = await repo.create(TaskDraft(owner_id=user_id, text=text.strip()))
        print(f"已创建: {task.id}")
    finally:
        await store.close()


if __name__ == "__main__":
    sys.exit(main())
