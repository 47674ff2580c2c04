from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from fastapi.responses import JSONResponse


# PUBLIC_INTERFACE
def error_response(
    status_code: int,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """
    Build the standard error response for every failure.

    Args:
        status_code: HTTP status to send.
        message: Human-readable message, safe to show to callers.
        headers: Optional extra headers (e.g. WWW-Authenticate).

    Returns:
        JSONResponse whose body is exactly {"error": message}.
    """
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=dict(headers) if headers else None,
    )


# PUBLIC_INTERFACE
def describe_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Collapse pydantic/FastAPI validation errors into one readable line.

    The first error wins; its location (minus the 'body'/'query'/'path' prefix)
    is joined with dots and prepended, e.g. "isChecked: Input should be a valid boolean".
    """
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    # Integer parts are list indexes or JSON offsets, not field names.
    loc = [part for part in first.get("loc", ()) if isinstance(part, str) and part not in ("body", "query", "path")]
    msg = str(first.get("msg", "Invalid value"))
    # Custom validators are reported as "Value error, <message>".
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{'.'.join(loc)}: {msg}" if loc else msg
