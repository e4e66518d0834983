"""SolForge - streaming parser and merge engine for generated Solana dApps"""

__version__ = "1.0.0"
