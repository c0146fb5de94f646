import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.responses import RedirectResponse
from linkpulse.config import Settings
from linkpulse.dependencies import get_link_service, get_recorder, get_settings
from linkpulse.errors import TransientStoreError
from linkpulse.services.click_recorder import ClickRecorder
from linkpulse.services.link_service import ClickContext, LinkService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirect"])


@router.get("/{alias}")
async def redirect_to_long_url(
    alias: str,
    request: Request,
    link_service: LinkService = Depends(get_link_service),
    recorder: ClickRecorder = Depends(get_recorder),
    settings: Settings = Depends(get_settings)
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the visitor id from the cookie (or mint one)
    2. Resolve the long URL cache-aside; click recording and the counter
       increment are scheduled in the background
    3. Redirect immediately, setting the visitor cookie if it was minted
    """
    visitor_id, minted = recorder.identify_visitor(
        request.cookies.get(settings.visitor_cookie_name)
    )
    context = ClickContext(
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
        visitor_id=visitor_id,
    )

    try:
        long_url = await link_service.resolve(alias, context)
    except TransientStoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    if not long_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found or inactive"
        )

    logger.debug("Redirect alias=%s visitor=%s", alias, visitor_id)

    response = RedirectResponse(url=long_url, status_code=status.HTTP_302_FOUND)
    if minted:
        response.set_cookie(
            key=settings.visitor_cookie_name,
            value=visitor_id,
            max_age=settings.visitor_cookie_max_age,
            httponly=True,
            secure=settings.environment == "production",
            samesite="lax",
        )
    return response
