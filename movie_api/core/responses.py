# movie_api/core/responses.py
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from fastapi import Request
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    status_code: int = 200
    message: str = "Request successful"
    data: Optional[T] = None
    timestamp: str
    path: str


def ok(request: Request, data=None, message: str = "Request successful", status_code: int = 200) -> dict:
    """Wrap a payload in the standard success envelope."""
    return {
        "success": True,
        "status_code": status_code,
        "message": message,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "path": request.url.path,
    }
