"""
请求/响应日志中间件

每个请求记录一条开始日志与一条结束日志（含耗时与调用方身份）。
收款信息等敏感字段脱敏；网关回调原文参与验签，不读取也不记录。
"""
import json
import time
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import SENSITIVE_KEYS, get_logger


logger = get_logger(__name__)

MASK = "***"


def sanitize(data: Any, sensitive: frozenset) -> Any:
    """递归脱敏 dict/list 中的敏感键"""
    if isinstance(data, dict):
        return {
            key: (MASK if str(key).lower() in sensitive else sanitize(value, sensitive))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize(item, sensitive) for item in data]
    return data


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    访问日志中间件

    请求体仅在 DEBUG 且开启 LOG_REQUEST_BODY_ENABLE_BY_DEFAULT 时记录，
    可用请求头 X-Log-Body 单独开关；只解析 JSON，超出长度截断。
    """

    SKIP_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

    # 网关回调原文参与验签
    SKIP_BODY_PREFIXES = ("/api/v1/payments/webhooks",)

    SENSITIVE_FIELDS = SENSITIVE_KEYS | {"token"}

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.body_log_default: bool = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT
        self.max_body_bytes: int = settings.LOG_REQUEST_BODY_MAX_BYTES

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        context = await self._request_context(request)
        logger.info("request_started", **context)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=round(time.perf_counter() - started, 4),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
                **context,
            )
            raise

        duration = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        self._log_completion(response, round(duration, 4), context)
        return response

    async def _request_context(self, request: Request) -> dict:
        context: dict = {
            "method": request.method,
            "path": request.url.path,
        }
        if request.query_params:
            context["query_params"] = dict(request.query_params)
        if request.path_params:
            context["path_params"] = dict(request.path_params)

        # 身份由上游网关注入
        actor_id = request.headers.get("X-User-Id")
        if actor_id:
            context["actor_id"] = actor_id
            context["actor_role"] = request.headers.get("X-User-Role", "BUYER")

        if request.method in ("POST", "PUT", "PATCH") and self._should_log_body(request):
            body = await self._json_body(request)
            if body is not None:
                context["body"] = body
        return context

    def _should_log_body(self, request: Request) -> bool:
        if request.url.path.startswith(self.SKIP_BODY_PREFIXES):
            return False
        header = (request.headers.get("X-Log-Body") or "").lower()
        if header in {"true", "1", "yes"}:
            return True
        if header in {"false", "0", "no"}:
            return False
        return bool(self.body_log_default and settings.DEBUG)

    async def _json_body(self, request: Request) -> Optional[Any]:
        if "application/json" not in request.headers.get("content-type", "").lower():
            return None
        raw = await request.body()
        if not raw:
            return None
        snippet = raw[: self.max_body_bytes].decode("utf-8", errors="ignore")
        try:
            parsed = json.loads(snippet)
        except ValueError:
            return {"truncated": True, "length": len(raw)}
        return sanitize(parsed, self.SENSITIVE_FIELDS)

    @staticmethod
    def _log_completion(response: Response, duration: float, context: dict) -> None:
        status_code = response.status_code
        if status_code < 400:
            logger.info("request_completed", status_code=status_code, duration=duration, **context)
        elif status_code < 500:
            logger.warning("request_client_error", status_code=status_code, duration=duration, **context)
        else:
            logger.error("request_server_error", status_code=status_code, duration=duration, **context)
