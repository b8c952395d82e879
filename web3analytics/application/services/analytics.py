"""Web3Analytics — the public lifecycle surface of the client.

Wires seed storage, identity bootstrap, and the registration gate together on
``initialize()``, then routes page/track/identify calls into the delivery
queue. Nothing here raises into the host application: failures are logged
and leave tracking disabled or the event undelivered.
"""

import logging
from collections.abc import Mapping
from typing import Any

from web3analytics.application.interfaces import DocumentStore
from web3analytics.application.services.delivery_queue import EventDeliveryQueue
from web3analytics.application.services.identity_bootstrap import IdentityBootstrap
from web3analytics.application.services.payload_normalizer import PayloadNormalizer
from web3analytics.application.services.registration_gate import RegistrationGate
from web3analytics.application.services.seed_store import SeedStore
from web3analytics.domain.entities import AppStatus, SessionState, UserStatus
from web3analytics.domain.exceptions import (
    AuthenticationError,
    LedgerError,
    StorageError,
)

logger = logging.getLogger(__name__)


class Web3Analytics:
    """Analytics plugin: initialize once, then page/track/identify.

    Usage:
        analytics = Web3Analytics(app_id=..., seed_store=..., ...)
        await analytics.initialize()
        analytics.track({"event": "click", "meta": {"ts": 1700000000000}})
        await analytics.aclose()
    """

    name = "web3analytics"

    def __init__(
        self,
        *,
        app_id: str,
        seed_store: SeedStore,
        identity_bootstrap: IdentityBootstrap,
        registration_gate: RegistrationGate,
        document_store: DocumentStore,
        normalizer: PayloadNormalizer | None = None,
    ):
        self._app_id = app_id
        self._seed_store = seed_store
        self._identity_bootstrap = identity_bootstrap
        self._registration_gate = registration_gate
        self._document_store = document_store
        self._normalizer = normalizer or PayloadNormalizer()
        self._session = SessionState(app_id=app_id)
        self._queue: EventDeliveryQueue | None = None
        self._initialized = False

    @property
    def session(self) -> SessionState:
        return self._session

    def is_ready(self) -> bool:
        return self._session.ready

    def loaded(self) -> bool:
        return self.is_ready()

    async def initialize(self) -> SessionState:
        """Load or create the seed, authenticate, and check registration.

        Must be called once per process; later calls return the existing session.
        """
        if self._initialized:
            logger.warning("initialize() called more than once; keeping the existing session")
            return self._session
        self._initialized = True

        session = SessionState(app_id=self._app_id)
        try:
            seed = await self._seed_store.load_or_create()
            identity = await self._identity_bootstrap.authenticate(seed)
            await self._seed_store.remember_identity(identity)
        except (AuthenticationError, StorageError) as exc:
            logger.error("Could not establish device identity. Tracking not enabled: %s", exc)
            self._session = session
            return session
        session = session.with_changes(identity=identity)

        try:
            app_registered = await self._registration_gate.check_app_registration(self._app_id)
        except LedgerError as exc:
            logger.error("App registration check failed: %s", exc)
            app_registered = False

        if not app_registered:
            logger.info("%s is not a registered app. Tracking not enabled.", self._app_id)
            self._session = session.with_changes(app_status=AppStatus.UNREGISTERED)
            return self._session
        logger.info("App is Registered: %s", self._app_id)

        signer_address = self._registration_gate.signer_address(seed.private_key_hex)
        try:
            user_status = await self._registration_gate.ensure_user_registered(
                self._app_id, seed.private_key_hex, identity.id
            )
        except LedgerError as exc:
            logger.error("User registration check failed: %s", exc)
            user_status = UserStatus.UNKNOWN

        self._session = session.with_changes(
            app_status=AppStatus.REGISTERED,
            signer_address=signer_address,
            user_status=user_status,
        )
        self._queue = EventDeliveryQueue(self._normalizer, self._document_store, self._session)
        return self._session

    def page(self, payload: Mapping[str, Any]) -> None:
        self._enqueue("page", payload)

    def track(self, payload: Mapping[str, Any]) -> None:
        self._enqueue("track", payload)

    def identify(self, payload: Mapping[str, Any]) -> None:
        self._enqueue("identify", payload)

    def _enqueue(self, kind: str, payload: Mapping[str, Any]) -> None:
        if self._queue is None or not self._session.ready:
            logger.debug("Tracking not enabled; dropping %s call", kind)
            return
        try:
            sequence = self._queue.enqueue(payload)
        except RuntimeError as exc:
            logger.error("Could not queue %s call: %s", kind, exc)
            return
        logger.debug("Queued %s call as event #%d", kind, sequence)

    async def drain(self) -> None:
        """Wait for every event queued so far to be delivered or dropped."""
        if self._queue is not None:
            await self._queue.drain()

    async def wait_for_registration(self) -> list[UserStatus]:
        return await self._registration_gate.wait_for_registrations()

    async def aclose(self) -> None:
        """Flush queued events and let background registration settle."""
        if self._queue is not None:
            await self._queue.aclose()
        await self._registration_gate.wait_for_registrations()
