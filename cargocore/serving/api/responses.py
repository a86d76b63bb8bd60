"""
Response Envelope

Every route answers with

    {"success": bool, "data"?: ..., "error"?: str, "message"?: str,
     "details"?: ..., "timestamp": ISO-8601}

Payload models serialize by alias, so output keys are camelCase.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any,
    message: str,
    now: datetime,
    **extra: Any,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": True, "data": data, "message": message, **extra, "timestamp": now}
    return JSONResponse(content=jsonable_encoder(body))


def error_response(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    details: Any = None,
    now: Optional[datetime] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    if details is not None:
        body["details"] = details
    body["timestamp"] = now or datetime.now(timezone.utc)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
