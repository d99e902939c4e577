"""TaskRepository 单元测试

测试内容：
1. create / list_for_user 往返，服务端分配 id 与 created_at
2. update / delete 只在确认后修改本地集合
3. 记录存储失败 -> WriteError / FetchError，本地状态不变
4. 其他会话已删除的任务 -> NotFoundError
5. owner 隔离
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from taskboard.core.exceptions import (
    FetchError,
    NotFoundError,
    RecordStoreError,
    WriteError,
)
from taskboard.core.models import Category, Priority, TaskDraft, TaskPatch
from taskboard.core.repository import TaskRepository


def _draft(text: str = "写周报", owner_id: str = "user-1", **kwargs) -> TaskDraft:
    return TaskDraft(owner_id=owner_id, text=text, **kwargs)


class TestCreateAndList:
    """创建 + 列表往返"""

    async def test_create_assigns_server_fields(self, repo):
        task = await repo.create(_draft(priority=Priority.HIGH, category=Category.WORK))
        assert task.id
        assert task.created_at is not None
        assert task.completed is False
        assert task.priority == Priority.HIGH
        assert task.category == Category.WORK
        assert task.owner_id == "user-1"

    async def test_create_prepends_to_local_collection(self, repo):
        first = await repo.create(_draft("first"))
        second = await repo.create(_draft("second"))
        assert [t.id for t in repo.tasks] == [second.id, first.id]

    async def test_round_trip(self, repo):
        created = await repo.create(_draft("牛奶", due_date=datetime(2030, 1, 1, tzinfo=UTC)))
        tasks = await repo.list_for_user("user-1")
        assert [t.id for t in tasks] == [created.id]
        assert tasks[0].due_date == datetime(2030, 1, 1, tzinfo=UTC)
        assert tasks[0] == created

    async def test_list_ordered_by_created_at_desc(self, repo):
        ids = [(await repo.create(_draft(f"t{i}"))).id for i in range(4)]
        tasks = await repo.list_for_user("user-1")
        assert [t.id for t in tasks] == list(reversed(ids))

    async def test_list_scoped_by_owner(self, repo):
        await repo.create(_draft("mine"))
        await repo.create(_draft("theirs", owner_id="user-2"))
        tasks = await repo.list_for_user("user-1")
        assert [t.text for t in tasks] == ["mine"]
        assert repo.owner_id == "user-1"

    async def test_list_replaces_local_collection(self, repo):
        await repo.create(_draft("a"))
        before = repo.tasks
        await repo.list_for_user("user-2")
        assert repo.tasks == ()
        assert before != repo.tasks

    async def test_create_failure_leaves_state_unchanged(self, repo, record_store):
        await repo.create(_draft("kept"))
        snapshot = repo.tasks
        record_store.insert = AsyncMock(side_effect=RecordStoreError("constraint"))

        with pytest.raises(WriteError) as exc_info:
            await repo.create(_draft("lost"))
        assert exc_info.value.operation == "create"
        assert repo.tasks is snapshot

    async def test_list_failure_raises_fetch_error(self, repo, record_store):
        await repo.create(_draft("kept"))
        snapshot = repo.tasks
        record_store.select = AsyncMock(side_effect=RecordStoreError("auth lost"))

        with pytest.raises(FetchError) as exc_info:
            await repo.list_for_user("user-1")
        assert exc_info.value.owner_id == "user-1"
        assert repo.tasks is snapshot


class TestUpdate:
    """update 测试"""

    async def test_update_completed(self, repo):
        task = await repo.create(_draft())
        updated = await repo.update(task.id, {"completed": True})
        assert updated.completed is True
        assert updated.updated_at is not None
        assert updated.created_at == task.created_at
        assert repo.get(task.id) == updated

    async def test_full_edit_patch(self, repo):
        task = await repo.create(_draft(due_date=datetime(2030, 1, 1, tzinfo=UTC)))
        updated = await repo.edit(
            task.id,
            text="改过的",
            priority=Priority.LOW,
            category=Category.STUDY,
            due_date=None,
        )
        assert updated.text == "改过的"
        assert updated.priority == Priority.LOW
        assert updated.category == Category.STUDY
        assert updated.due_date is None
        assert updated.id == task.id
        assert updated.owner_id == task.owner_id

    async def test_toggle_completed_and_important(self, repo):
        task = await repo.create(_draft())
        assert (await repo.toggle_completed(task.id)).completed is True
        assert (await repo.toggle_completed(task.id)).completed is False
        assert (await repo.toggle_important(task.id)).important is True

    async def test_update_other_tasks_untouched(self, repo):
        a = await repo.create(_draft("a"))
        b = await repo.create(_draft("b"))
        await repo.update(a.id, TaskPatch(important=True))
        assert repo.get(b.id) == b
        assert [t.id for t in repo.tasks] == [b.id, a.id]

    async def test_update_deleted_by_other_session(self, repo, record_store):
        task = await repo.create(_draft())
        # 另一个会话直接在存储端删除
        await record_store.delete("todos", eq={"id": task.id})
        snapshot = repo.tasks

        with pytest.raises(NotFoundError) as exc_info:
            await repo.update(task.id, {"completed": True})
        assert exc_info.value.task_id == task.id
        assert repo.tasks is snapshot
        assert repo.get(task.id).completed is False

    async def test_update_other_owner_is_not_found(self, repo, current_user):
        task = await repo.create(_draft())
        current_user["user_id"] = "user-2"
        with pytest.raises(NotFoundError):
            await repo.update(task.id, {"completed": True})

    async def test_update_failure_no_optimistic_change(self, repo, record_store):
        task = await repo.create(_draft())
        snapshot = repo.tasks
        record_store.update = AsyncMock(side_effect=RecordStoreError("network down"))

        with pytest.raises(WriteError) as exc_info:
            await repo.update(task.id, {"completed": True})
        assert not isinstance(exc_info.value, NotFoundError)
        assert repo.tasks is snapshot

    async def test_update_requires_signed_in_user(self, repo, current_user):
        task = await repo.create(_draft())
        current_user["user_id"] = None
        with pytest.raises(WriteError):
            await repo.update(task.id, {"completed": True})

    async def test_empty_patch_rejected(self, repo):
        task = await repo.create(_draft())
        with pytest.raises(ValueError):
            await repo.update(task.id, {})

    async def test_toggle_unknown_local_task(self, repo):
        with pytest.raises(NotFoundError):
            await repo.toggle_completed("missing")


class TestDelete:
    """delete 测试"""

    async def test_delete_then_list_excludes(self, repo):
        keep = await repo.create(_draft("keep"))
        gone = await repo.create(_draft("gone"))
        await repo.delete(gone.id)
        assert [t.id for t in repo.tasks] == [keep.id]
        tasks = await repo.list_for_user("user-1")
        assert [t.id for t in tasks] == [keep.id]

    async def test_delete_missing_raises_not_found(self, repo):
        with pytest.raises(NotFoundError):
            await repo.delete("01JNOTEXIST0000000000000000")

    async def test_delete_not_found_is_write_error(self, repo):
        with pytest.raises(WriteError):
            await repo.delete("01JNOTEXIST0000000000000000")

    async def test_delete_failure_keeps_local(self, repo, record_store):
        task = await repo.create(_draft())
        record_store.delete = AsyncMock(side_effect=RecordStoreError("timeout"))
        with pytest.raises(WriteError):
            await repo.delete(task.id)
        assert repo.get(task.id) == task


class TestLegacyRows:
    async def test_missing_important_column_defaults_false(self, current_user):
        row = {
            "id": "OLD1",
            "user_id": "user-1",
            "text": "legacy",
            "completed": False,
            "priority": "normal",
            "category": "personal",
            "due_date": None,
            "important": None,
            "created_at": (datetime.now(UTC) - timedelta(days=3)).isoformat(),
            "updated_at": None,
        }
        store = AsyncMock()
        store.select.return_value = [row]

        async def resolve_user():
            return current_user["user_id"]

        repo = TaskRepository(store, resolve_user)
        tasks = await repo.list_for_user("user-1")
        assert tasks[0].important is False
        store.select.assert_awaited_once()
        assert store.select.await_args.kwargs["order_by"] == "created_at"
        assert store.select.await_args.kwargs["descending"] is True

    async def test_malformed_row_is_fetch_error(self):
        store = AsyncMock()
        store.select.return_value = [{"id": "X", "user_id": "u", "priority": "bogus"}]

        async def resolve_user():
            return "u"

        with pytest.raises(FetchError):
            await TaskRepository(store, resolve_user).list_for_user("u")
