"""
FastAPI dependencies for dependency injection.

The container is built once in the application lifespan and stored on
app.state; these functions hand its parts to routes.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override a dependency or build a container with fakes)
"""

from fastapi import Depends, HTTPException, Request, status

from linkpulse.config import Settings
from linkpulse.container import Container
from linkpulse.errors import Unauthenticated
from linkpulse.services.analytics_service import AnalyticsAggregator
from linkpulse.services.click_recorder import ClickRecorder
from linkpulse.services.link_service import LinkService


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_settings(container: Container = Depends(get_container)) -> Settings:
    return container.settings


def get_link_service(container: Container = Depends(get_container)) -> LinkService:
    return container.link_service


def get_analytics(container: Container = Depends(get_container)) -> AnalyticsAggregator:
    return container.analytics


def get_recorder(container: Container = Depends(get_container)) -> ClickRecorder:
    return container.recorder


async def get_current_owner(
    request: Request,
    container: Container = Depends(get_container)
) -> str:
    """Authenticated owner id for the request (401 when absent)"""
    try:
        return await container.auth.authenticate(request)
    except Unauthenticated as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message
        )
