"""The JSON envelope every endpoint answers with.

``code`` is 0 on success and the ``AppError`` code otherwise; ``error``
carries the stable kind (``"SlippageExceeded"``, ``"AgentGraduated"`` ...)
that clients branch on, so message wording can change freely. ``data`` is
null whenever ``code`` is non-zero.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    error: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(data=data)


def error_response(code: int, message: str, kind: str | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, error=kind)
