"""中间件模块"""
from .request_id import RequestIDMiddleware, client_ip
from .logging import LoggingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "client_ip",
]
