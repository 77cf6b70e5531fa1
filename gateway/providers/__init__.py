"""
Provider-specific API clients for the gateway
"""

from .bounceban import BounceBanClient

__all__ = [
    "BounceBanClient",
]
