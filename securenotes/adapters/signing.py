"""Local signature recovery for wallet challenge messages (EIP-191)."""

from __future__ import annotations

from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct


def build_challenge(address: str, timestamp_ms: int) -> str:
    """Challenge text binding the candidate account to a freshness value."""
    return (
        "Blockchain Notes App Authentication\n"
        f"Address: {address}\n"
        f"Timestamp: {timestamp_ms}"
    )


def recover_signer(message: str, signature: str) -> str:
    """Return the checksummed address that produced ``signature`` over ``message``.

    Raises:
        ValueError: If the signature is malformed.
    """
    return EthAccount.recover_message(encode_defunct(text=message), signature=signature)


__all__ = ["build_challenge", "recover_signer"]
