"""Remote Ethereum signing backed by custodial wallets."""

__version__ = "1.0.4"
