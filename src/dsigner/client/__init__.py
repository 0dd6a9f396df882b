"""Signer adapters for calling code."""

from .base import ChainProvider, Signer, SignerState
from .local import LocalSigner
from .signer import DEFAULT_API_URL, RemoteSigner

__all__ = [
    "ChainProvider", "Signer", "SignerState",
    "LocalSigner",
    "DEFAULT_API_URL", "RemoteSigner",
]
