"""
Signer interfaces for the Crowdfund SDK.

A signer turns an assembled, unsigned transaction envelope (base64 XDR) into
a signed one. Wallet integrations implement the ``Signer`` protocol; the SDK
ships ``LocalSigner`` for scripts and tests.
"""
from typing import Protocol, runtime_checkable

from .local import LocalSigner


@runtime_checkable
class Signer(Protocol):
    """Protocol for transaction signers"""
    public_key: str

    def sign(self, envelope_xdr: str, public_key: str, network_passphrase: str) -> str:
        """Sign the envelope and return the signed envelope as base64 XDR"""
        ...


__all__ = ["Signer", "LocalSigner"]
