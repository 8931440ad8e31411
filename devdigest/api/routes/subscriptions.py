"""Subscription endpoints: public forms plus subscribe/unsubscribe.

These handlers only call RecipientStore.add/remove; the store owns the
subscriber file and its locking.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import ValidationError

from devdigest.api.forms import read_body, wants_json
from devdigest.api.models import SubscriptionRequest
from devdigest.storage.recipients import RecipientStore
from devdigest.templates import render_template

router = APIRouter(tags=["subscriptions"])


def _store(request: Request) -> RecipientStore:
    return request.app.state.store


async def _email_from(request: Request) -> str:
    body = await read_body(request)
    try:
        parsed = SubscriptionRequest.model_validate(body)
    except ValidationError as e:
        # First error message is the validator's ("Email is required", ...)
        message = e.errors()[0].get("msg", "Invalid email") if e.errors() else "Invalid email"
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message.removeprefix("Value error, "),
        ) from e
    if parsed.email is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")
    return parsed.email


@router.get("/", response_class=HTMLResponse)
async def subscribe_form() -> HTMLResponse:
    return HTMLResponse(render_template("subscribe.html", {}))


@router.post("/subscribe")
async def subscribe(request: Request) -> Response:
    """Add a subscriber. Subscribing twice is a no-op."""
    email = await _email_from(request)
    created = await _store(request).add(email)

    if wants_json(request):
        return JSONResponse(
            {"email": email, "status": "subscribed" if created else "already_subscribed"},
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
    return HTMLResponse(render_template("subscribed.html", {"email": email}))


@router.get("/unsubscribe", response_class=HTMLResponse)
async def unsubscribe_form() -> HTMLResponse:
    return HTMLResponse(render_template("unsubscribe.html", {}))


@router.post("/unsubscribe")
async def unsubscribe(request: Request) -> Response:
    """Remove a subscriber. Unsubscribing an unknown address is a no-op."""
    email = await _email_from(request)
    removed = await _store(request).remove(email)

    if wants_json(request):
        return JSONResponse({"email": email, "status": "unsubscribed" if removed else "not_subscribed"})
    return HTMLResponse(render_template("unsubscribed.html", {"email": email}))
