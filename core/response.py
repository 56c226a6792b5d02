"""
统一响应格式定义

所有接口返回 {code, message, data, error}：成功时 code=0、error 为空；
失败时 data 为空，error 携带类型、字段与请求ID。金额在 JSON 中为字符串。
"""
from datetime import datetime, timezone
from typing import Any, Generic, Optional, Protocol, Sequence, TypeVar

from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode


T = TypeVar("T")


def utc_isoformat(ts: datetime) -> str:
    """UTC ISO8601，统一以 Z 结尾（无时区的值按 UTC 处理）"""
    ts = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)
    return ts.isoformat().replace("+00:00", "Z")


class ErrorDetail(BaseModel):
    """错误详情"""
    type: str
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def _serialize_timestamp(self, timestamp: datetime) -> str:
        return utc_isoformat(timestamp)


class Response(BaseModel, Generic[T]):
    """统一响应模型"""
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


class PaginatedData(BaseModel, Generic[T]):
    """分页数据；pages 由 total/size 推导"""
    items: list[T]
    total: int
    page: int
    size: int
    pages: int


class PageLike(Protocol):
    items: Sequence[Any]
    total: int
    page: int
    size: int


def success_response(data: Any = None, message: str = "Success") -> Response:
    return Response(code=BusinessCode.SUCCESS, message=message, data=data)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Response:
    """错误响应；data 固定为空"""
    return Response(
        code=code,
        message=message,
        error=ErrorDetail(type=error_type, details=details, field=field, request_id=request_id),
    )


def paginated_response(page: PageLike, message: str = "Success") -> Response[PaginatedData]:
    pages = (page.total + page.size - 1) // page.size if page.size > 0 else 0
    return Response(
        code=BusinessCode.SUCCESS,
        message=message,
        data=PaginatedData(
            items=list(page.items),
            total=page.total,
            page=page.page,
            size=page.size,
            pages=pages,
        ),
    )
