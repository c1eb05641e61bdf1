from .obf_client import ObfClient

__all__ = ["ObfClient"]
