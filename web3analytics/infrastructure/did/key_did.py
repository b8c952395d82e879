"""did:key provider and resolver for secp256k1 keys.

The seed is used directly as the secp256k1 private scalar. The DID is
``did:key:z`` + base58btc(multicodec 0xe7 ‖ compressed public key), the same
identifier the browser client derives from the same seed.
"""

import logging
import secrets

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from web3analytics.application.interfaces import DIDProvider
from web3analytics.domain.entities import Identity, Seed
from web3analytics.domain.exceptions import AuthenticationError
from web3analytics.infrastructure.did.multibase import BASE58BTC_PREFIX, b58_decode, b58_encode

logger = logging.getLogger(__name__)

DID_KEY_PREFIX = "did:key:"
# varint-encoded multicodec for secp256k1-pub
SECP256K1_PUB_MULTICODEC = b"\xe7\x01"


def derive_private_key(seed: Seed) -> ec.EllipticCurvePrivateKey:
    """Turn the seed into a secp256k1 private key. Raises ValueError for out-of-range seeds."""
    return ec.derive_private_key(int.from_bytes(seed.value, "big"), ec.SECP256K1())


def encode_did(public_key: ec.EllipticCurvePublicKey) -> str:
    compressed = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.CompressedPoint,
    )
    return DID_KEY_PREFIX + BASE58BTC_PREFIX + b58_encode(SECP256K1_PUB_MULTICODEC + compressed)


class KeyDIDResolver:
    """Resolves did:key identifiers back to secp256k1 public keys."""

    def resolve(self, did: str) -> ec.EllipticCurvePublicKey:
        """Return the DID's public key. Raises AuthenticationError when it is not a secp256k1 did:key."""
        if not did.startswith(DID_KEY_PREFIX + BASE58BTC_PREFIX):
            raise AuthenticationError(f"Unsupported DID method: {did}")
        try:
            decoded = b58_decode(did[len(DID_KEY_PREFIX) + 1:])
        except ValueError as exc:
            raise AuthenticationError(f"Malformed did:key {did}: {exc}") from exc
        if not decoded.startswith(SECP256K1_PUB_MULTICODEC):
            raise AuthenticationError(f"did:key {did} is not a secp256k1 key")
        try:
            return ec.EllipticCurvePublicKey.from_encoded_point(
                ec.SECP256K1(), decoded[len(SECP256K1_PUB_MULTICODEC):]
            )
        except ValueError as exc:
            raise AuthenticationError(f"did:key {did} has an invalid public key: {exc}") from exc


class KeyDIDProvider(DIDProvider):
    """Derives the device DID and proves control of it with a signed challenge."""

    def __init__(self, resolver: KeyDIDResolver | None = None):
        self._resolver = resolver or KeyDIDResolver()

    async def authenticate(self, seed: Seed) -> Identity:
        try:
            private_key = derive_private_key(seed)
        except ValueError as exc:
            raise AuthenticationError(f"Seed is not a valid secp256k1 key: {exc}") from exc

        did = encode_did(private_key.public_key())
        logger.debug("Derived DID %s", did)

        challenge = secrets.token_bytes(32)
        signature = private_key.sign(challenge, ec.ECDSA(hashes.SHA256()))
        public_key = self._resolver.resolve(did)
        try:
            public_key.verify(signature, challenge, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature as exc:
            raise AuthenticationError(f"Handshake signature rejected for {did}") from exc

        return Identity(id=did, authenticated=True)
