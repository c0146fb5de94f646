from fastapi import APIRouter, Depends, HTTPException, status
from linkpulse.schemas.link import ShortenRequest, ShortLinkResponse
from linkpulse.services.link_service import LinkService
from linkpulse.dependencies import get_link_service, get_current_owner
from linkpulse.errors import (
    AliasConflict,
    AliasExhausted,
    TransientStoreError,
    ValidationError,
)

router = APIRouter(tags=["links"])


@router.post(
    "/shorten",
    response_model=ShortLinkResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_short_link(
    payload: ShortenRequest,
    owner_id: str = Depends(get_current_owner),
    link_service: LinkService = Depends(get_link_service)
):
    """Create a new short link, with a custom alias when one is given"""
    try:
        link = await link_service.create_short_link(
            owner_id=owner_id,
            long_url=payload.long_url,
            custom_alias=payload.custom_alias,
            topic=payload.topic,
        )
    except (ValidationError, AliasConflict) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except (AliasExhausted, TransientStoreError) as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    return ShortLinkResponse(
        short_url=link_service.short_url_for(link.alias),
        long_url=link.long_url,
        alias=link.alias,
        topic=link.topic,
        created_at=link.created_at,
    )
