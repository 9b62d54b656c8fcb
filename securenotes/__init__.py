"""Client core for wallet-authenticated notes stored in a remote contract."""

__version__ = "0.1.0"
