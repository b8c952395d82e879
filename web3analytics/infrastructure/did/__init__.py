from .key_did import KeyDIDProvider, KeyDIDResolver

__all__ = ["KeyDIDProvider", "KeyDIDResolver"]
