"""taskboard 日志配置

所有日志经 structlog 处理后交给标准库 logging 输出。
每条日志都带 app 字段；登录后带 user_id（见 bind_user_context），
登出后清除，避免上一个用户的身份串入后续日志。
"""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .config import get_log_format, get_log_level

APP_NAME = "taskboard"


def add_app_name(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def build_processors() -> list[Processor]:
    """structlog 与 foreign（标准库）日志共用的处理器链"""
    return [
        structlog.contextvars.merge_contextvars,
        add_app_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(user_id: str | None = None) -> None:
    """初始化日志

    Args:
        user_id: CLI 等单用户入口可直接传入，之后的日志都带上该用户
    """
    processors = build_processors()
    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(get_log_format()),
            foreign_pre_chain=processors,
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, get_log_level().upper(), logging.INFO))

    bind_user_context(user_id)


def bind_user_context(user_id: str | None) -> None:
    """把当前用户绑定到 structlog contextvars，之后的日志自动携带 user_id"""
    structlog.contextvars.clear_contextvars()
    if user_id:
        structlog.contextvars.bind_contextvars(user_id=user_id)
