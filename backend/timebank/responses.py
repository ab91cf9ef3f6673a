"""
TimeBank Backend — Error Envelope
==================================

Every failed request is answered with the same JSON body:

    {
        "success": false,
        "error": "<error code>",
        "message": "<human readable>",
        "details": {...} | null,
        "request_id": "<X-Request-ID>" | null
    }

Used by the exception handlers in main and by middleware that answers
before the route layer runs.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from timebank.middleware.request_id import request_id_var


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "details": details or None,
            "request_id": request_id_var.get("") or None,
        },
        headers=headers,
    )
