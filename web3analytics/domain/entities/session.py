"""Domain entity — the immutable result of a client initialization."""

from dataclasses import dataclass, replace

from .identity import Identity
from .registration import AppStatus, UserStatus


@dataclass(frozen=True)
class SessionState:
    """Snapshot produced by initialize() and shared by reference.

    Replaces the browser client's ambient "loaded" flag: tracking is enabled
    exactly when the identity is authenticated and the app is registered.
    User registration does not gate readiness.
    """

    app_id: str
    identity: Identity | None = None
    signer_address: str | None = None
    app_status: AppStatus = AppStatus.UNKNOWN
    user_status: UserStatus = UserStatus.UNKNOWN

    @property
    def ready(self) -> bool:
        return (
            self.identity is not None
            and self.identity.authenticated
            and self.app_status is AppStatus.REGISTERED
        )

    def with_changes(self, **changes) -> "SessionState":
        return replace(self, **changes)
