"""Pydantic DTOs for the HTTP collector endpoints."""

from pydantic import BaseModel


class QueuedResponse(BaseModel):
    """Returned by page/track/identify. ``queued`` is False when tracking is not enabled."""

    queued: bool


class LoadedResponse(BaseModel):
    loaded: bool
    did: str | None = None
    app_status: str
    user_status: str
