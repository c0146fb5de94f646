from fastapi import APIRouter, Depends, HTTPException, status
from linkpulse.schemas.analytics import OwnerRollup, Rollup, TopicRollup
from linkpulse.services.analytics_service import AnalyticsAggregator
from linkpulse.dependencies import get_analytics, get_current_owner
from linkpulse.errors import LinkNotFound, TransientStoreError

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _store_unavailable(e: TransientStoreError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)


# Declared before /{alias} so "overall" isn't taken for an alias
@router.get("/overall", response_model=OwnerRollup, response_model_by_alias=True)
async def get_overall_analytics(
    owner_id: str = Depends(get_current_owner),
    analytics: AnalyticsAggregator = Depends(get_analytics)
):
    """Rollup across all of the caller's links (all zero when they have none)"""
    try:
        return await analytics.for_owner(owner_id)
    except LinkNotFound:
        return OwnerRollup()
    except TransientStoreError as e:
        raise _store_unavailable(e)


@router.get("/topic/{topic}", response_model=TopicRollup, response_model_by_alias=True)
async def get_topic_analytics(
    topic: str,
    owner_id: str = Depends(get_current_owner),
    analytics: AnalyticsAggregator = Depends(get_analytics)
):
    """Rollup across all links tagged with a topic (all zero for unknown topics)"""
    try:
        return await analytics.for_topic(topic)
    except LinkNotFound:
        return TopicRollup()
    except TransientStoreError as e:
        raise _store_unavailable(e)


@router.get("/{alias}", response_model=Rollup, response_model_by_alias=True)
async def get_alias_analytics(
    alias: str,
    owner_id: str = Depends(get_current_owner),
    analytics: AnalyticsAggregator = Depends(get_analytics)
):
    """Rollup for a single short link"""
    try:
        return await analytics.for_alias(alias)
    except LinkNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except TransientStoreError as e:
        raise _store_unavailable(e)
