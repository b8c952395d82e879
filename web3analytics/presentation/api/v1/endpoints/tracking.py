"""Tracking endpoints — page/track/identify are queued and answered immediately."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from web3analytics.application.schemas import LoadedResponse, QueuedResponse
from web3analytics.application.services import Web3Analytics

router = APIRouter(tags=["Tracking"])


def get_analytics(request: Request) -> Web3Analytics:
    """The facade built during the app lifespan."""
    return request.app.state.analytics


@router.post("/page", response_model=QueuedResponse, status_code=status.HTTP_202_ACCEPTED)
async def page(
    payload: dict[str, Any] = Body(...),
    analytics: Web3Analytics = Depends(get_analytics),
) -> QueuedResponse:
    analytics.page(payload)
    return QueuedResponse(queued=analytics.is_ready())


@router.post("/track", response_model=QueuedResponse, status_code=status.HTTP_202_ACCEPTED)
async def track(
    payload: dict[str, Any] = Body(...),
    analytics: Web3Analytics = Depends(get_analytics),
) -> QueuedResponse:
    analytics.track(payload)
    return QueuedResponse(queued=analytics.is_ready())


@router.post("/identify", response_model=QueuedResponse, status_code=status.HTTP_202_ACCEPTED)
async def identify(
    payload: dict[str, Any] = Body(...),
    analytics: Web3Analytics = Depends(get_analytics),
) -> QueuedResponse:
    analytics.identify(payload)
    return QueuedResponse(queued=analytics.is_ready())


@router.get("/loaded", response_model=LoadedResponse)
async def loaded(analytics: Web3Analytics = Depends(get_analytics)) -> LoadedResponse:
    """Whether initialization completed and the app is registered."""
    session = analytics.session
    return LoadedResponse(
        loaded=analytics.loaded(),
        did=session.identity.id if session.identity else None,
        app_status=session.app_status.value,
        user_status=session.user_status.value,
    )
