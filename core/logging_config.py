"""
Structlog 日志配置模块

开发环境输出彩色控制台日志，其余环境输出单行 JSON；
标准库 logging（uvicorn、sqlalchemy、celery）经同一处理链输出。
"""
import json
import logging
from typing import Any, List

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter

from core.config import settings


# 第三方库日志过于冗长，统一调高级别
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio", "celery.app.trace")

# 收款信息不落日志
SENSITIVE_KEYS = frozenset({
    "account_number",
    "ifsc_code",
    "upi_id",
    "account_holder_name",
    "bank_details",
    "payment_proof",
    "secret",
    "webhook_secret",
})


def redact_sensitive(_logger: Any, _method: str, event_dict: dict) -> dict:
    """顶层敏感键替换为 ***（嵌套结构由调用方自行脱敏）"""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _json_dumps(obj: Any, default=None, **kwargs) -> str:
    # Decimal 金额按字符串输出
    return json.dumps(obj, ensure_ascii=False, default=str, **kwargs)


def get_renderer() -> Any:
    if settings.DEBUG:
        return ConsoleRenderer(colors=True)
    return JSONRenderer(serializer=_json_dumps)


def configure_logging() -> None:
    """配置 structlog 并桥接标准库 logging"""
    shared_pre_chain: List[Any] = [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        redact_sensitive,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*shared_pre_chain, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(ProcessorFormatter(
        foreign_pre_chain=shared_pre_chain,
        processors=[ProcessorFormatter.remove_processors_meta, get_renderer()],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


configure_logging()
