"""
Uniform JSON response envelope.

Every endpoint answers with ``{"success": bool, "message": ...,
"data": ..., "count": ..., "error": ...}``; keys whose value is not
provided are omitted.
"""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
    count: Optional[int] = None,
) -> JSONResponse:
    """Build a successful envelope."""
    content: dict = {"success": True}
    if message is not None:
        content["message"] = message
    if count is not None:
        content["count"] = count
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_response(
    status_code: int,
    message: str,
    error: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build a failed envelope."""
    content: dict = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=headers,
    )
