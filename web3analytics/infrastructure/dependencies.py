"""Dependency wiring — builds a Web3Analytics facade from Settings."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from web3analytics.application.interfaces import RelayWriteClient
from web3analytics.application.services import (
    IdentityBootstrap,
    PayloadNormalizer,
    RegistrationGate,
    SeedStore,
    Web3Analytics,
)
from web3analytics.config import Settings, get_settings
from web3analytics.infrastructure.database import create_engine
from web3analytics.infrastructure.did import KeyDIDProvider
from web3analytics.infrastructure.docstore import HttpDocumentStore
from web3analytics.infrastructure.ledger import JsonRpcLedgerReader
from web3analytics.infrastructure.relay import GasRelayClient
from web3analytics.infrastructure.storage import SQLAlchemyKeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class ClientResources:
    """A built facade together with the resources it owns."""

    analytics: Web3Analytics
    engine: AsyncEngine
    document_store: HttpDocumentStore

    async def aclose(self) -> None:
        await self.analytics.aclose()
        await self.document_store.aclose()
        await self.engine.dispose()


async def build_analytics(settings: Settings | None = None) -> ClientResources:
    """Wire storage, DID provider, ledger, relay and document store into a facade.

    Creates the local storage table if needed. Does not call initialize().
    """
    settings = settings or get_settings()

    engine = create_engine(settings.storage_url)
    await SQLAlchemyKeyValueStorage.create_schema(engine)
    storage = SQLAlchemyKeyValueStorage.from_engine(engine)

    document_store = HttpDocumentStore(settings.document_store_url)

    def relay_factory() -> RelayWriteClient:
        return GasRelayClient(
            relay_url=settings.relay_url,
            json_rpc_url=settings.json_rpc_url,
            contract_address=settings.contract_address,
            paymaster_address=settings.paymaster_address,
        )

    gate = RegistrationGate(
        JsonRpcLedgerReader(settings.json_rpc_url),
        relay_factory,
        contract_address=settings.contract_address,
        gas_limit=settings.registration_gas_limit,
    )

    analytics = Web3Analytics(
        app_id=settings.app_id,
        seed_store=SeedStore(storage),
        identity_bootstrap=IdentityBootstrap(KeyDIDProvider(), document_store),
        registration_gate=gate,
        document_store=document_store,
        normalizer=PayloadNormalizer(),
    )
    logger.debug("Web3Analytics wired for app %s", settings.app_id)
    return ClientResources(analytics=analytics, engine=engine, document_store=document_store)
