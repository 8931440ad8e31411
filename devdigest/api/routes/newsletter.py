"""Manual newsletter trigger (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from devdigest.api.forms import read_body
from devdigest.api.models import SendNewsletterRequest
from devdigest.observability.logging import get_logger
from devdigest.pipeline import Pipeline

router = APIRouter(tags=["newsletter"])
logger = get_logger(__name__)


@router.post("/send-newsletter")
async def send_newsletter(
    request: Request,
    authorization: str | None = Header(None),
) -> JSONResponse:
    """
    Run one newsletter cycle now.

    Returns 200 with the cycle report when the cycle ran, even if some
    recipients failed; 500 only when the cycle could not run at all.
    """
    try:
        body = SendNewsletterRequest.model_validate(await read_body(request))
    except ValidationError as e:
        # A key that is not a string is a malformed credential
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    request.app.state.auth.verify(authorization=authorization, admin_key=body.admin_key)

    pipeline: Pipeline = request.app.state.pipeline
    report = await pipeline.run_cycle()

    if not report.success:
        logger.error("Manual newsletter run failed: %s", report.error)
        return JSONResponse(
            {"detail": "Error sending newsletter", "report": report.to_dict()},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return JSONResponse({"detail": "Newsletter sent successfully", "report": report.to_dict()})
