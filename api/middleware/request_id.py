"""
Request ID 中间件
生成或透传追踪ID，并绑定到 structlog 上下文
"""
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


def client_ip(request: Request) -> str:
    """代理头优先，其次为直连地址"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    为每个请求确定 request_id，写入 request.state 与响应头

    网关回调带事件ID时一并绑定到日志上下文，便于按事件追查入账。
    """

    HEADER_NAME = "X-Request-ID"
    GATEWAY_EVENT_HEADERS = ("X-Razorpay-Event-Id",)

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        request.state.request_id = request_id

        context = {
            "request_id": request_id,
            "client_ip": client_ip(request),
            "method": request.method,
            "path": request.url.path,
        }
        for header in self.GATEWAY_EVENT_HEADERS:
            if request.headers.get(header):
                context["gateway_event_id"] = request.headers[header]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response
