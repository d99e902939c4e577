"""taskboard 异常体系

FetchError / WriteError / NotFoundError 是仓储对调用方暴露的类型化失败；
RecordStoreError 是记录存储适配器抛出的底层错误，由仓储负责翻译。
所有错误对触发它的操作都是终态：不重试，不部分生效。
"""


class TaskboardError(Exception):
    """taskboard 基础异常"""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchError(TaskboardError):
    """任务列表拉取失败（网络 / 鉴权）"""

    def __init__(self, owner_id: str, original_error: Exception | None = None) -> None:
        """
        Args:
            owner_id: 拉取的用户 ID
            original_error: 原始异常
        """
        super().__init__(f"无法加载任务列表: {original_error or 'unknown error'}")
        self.owner_id = owner_id
        self.original_error = original_error


class WriteError(TaskboardError):
    """创建 / 更新 / 删除被记录存储拒绝"""

    def __init__(
        self,
        operation: str,
        task_id: str | None = None,
        original_error: Exception | None = None,
        message: str | None = None,
    ) -> None:
        """
        Args:
            operation: 操作名（create / update / delete）
            task_id: 目标任务 ID，create 时为 None
            original_error: 原始异常
            message: 自定义描述，None 时按 operation 生成
        """
        if message is None:
            target = f" {task_id}" if task_id else ""
            message = f"任务{target} {operation} 失败: {original_error or 'rejected'}"
        super().__init__(message)
        self.operation = operation
        self.task_id = task_id
        self.original_error = original_error


class NotFoundError(WriteError):
    """目标任务在当前用户下不存在

    通常意味着本地状态已过期（例如任务已在另一个会话中被删除），
    而非瞬时故障。
    """

    def __init__(self, operation: str, task_id: str) -> None:
        super().__init__(
            operation,
            task_id=task_id,
            message=f"任务 {task_id} 不存在或已被删除",
        )


class RecordStoreError(Exception):
    """记录存储调用失败（连接、约束冲突、鉴权等）"""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error
