"""Request body helpers: the public forms post urlencoded data, API clients post JSON."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status


def wants_json(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("application/json")


async def read_body(request: Request) -> dict[str, Any]:
    """Parse a JSON or form body into a flat dict."""
    if wants_json(request):
        try:
            data = await request.json()
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body"
            ) from e
        if not isinstance(data, dict):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Expected a JSON object"
            )
        return data

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
