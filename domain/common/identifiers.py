"""人类可读的业务编号生成"""
from __future__ import annotations

from datetime import datetime, timezone
import secrets


def generate_reference(prefix: str, now: datetime | None = None) -> str:
    """生成形如 ORD-20250918-3F9A1C7B 的编号（日期 + 8位随机十六进制）"""
    ts = (now or datetime.now(timezone.utc)).strftime("%Y%m%d")
    return f"{prefix}-{ts}-{secrets.token_hex(4).upper()}"
