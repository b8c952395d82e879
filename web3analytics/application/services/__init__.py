from .seed_store import SeedStore
from .identity_bootstrap import IdentityBootstrap
from .registration_gate import RegistrationGate
from .payload_normalizer import PayloadNormalizer
from .delivery_queue import EventDeliveryQueue
from .analytics import Web3Analytics

__all__ = [
    "SeedStore",
    "IdentityBootstrap",
    "RegistrationGate",
    "PayloadNormalizer",
    "EventDeliveryQueue",
    "Web3Analytics",
]
