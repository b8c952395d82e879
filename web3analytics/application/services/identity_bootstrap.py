"""Identity bootstrap — seed → authenticated DID → bound document-store signer."""

import logging

from web3analytics.application.interfaces import DIDProvider, DocumentStore
from web3analytics.domain.entities import Identity, Seed
from web3analytics.domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class IdentityBootstrap:
    """Authenticates the device DID and binds it to the document store.

    Call once per session, before any document-store write. Calling again
    replaces the binding.
    """

    def __init__(self, provider: DIDProvider, document_store: DocumentStore):
        self._provider = provider
        self._document_store = document_store

    async def authenticate(self, seed: Seed) -> Identity:
        try:
            identity = await self._provider.authenticate(seed)
        except AuthenticationError:
            raise
        except Exception as exc:
            raise AuthenticationError(f"DID authentication failed: {exc}") from exc

        if not identity.authenticated:
            raise AuthenticationError(f"DID handshake did not complete for {identity.id}")

        self._document_store.bind_identity(identity)
        logger.debug("Authenticated DID %s bound to document store", identity.id)
        return identity
