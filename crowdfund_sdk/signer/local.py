"""
Local keypair signer.
"""
from stellar_sdk import Keypair, TransactionEnvelope


class LocalSigner:
    """
    Signs envelopes with a secret seed held in memory.

    Intended for scripts, testnet bots and tests. It only signs for its own
    account and refuses requests naming another public key.
    """

    def __init__(self, secret: str):
        self._keypair = Keypair.from_secret(secret)
        self.public_key = self._keypair.public_key

    @classmethod
    def random(cls) -> "LocalSigner":
        """Create a signer for a freshly generated keypair"""
        return cls(Keypair.random().secret)

    def sign(self, envelope_xdr: str, public_key: str, network_passphrase: str) -> str:
        if public_key != self.public_key:
            raise ValueError(f"LocalSigner holds {self.public_key}, cannot sign for {public_key}")
        envelope = TransactionEnvelope.from_xdr(envelope_xdr, network_passphrase)
        envelope.sign(self._keypair)
        return envelope.to_xdr()

    def __repr__(self) -> str:
        return f"LocalSigner(public_key={self.public_key!r}, secret=[REDACTED])"
