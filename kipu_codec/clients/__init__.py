"""
KIPU Codec Client Modules

Provides the HTTP client for the KIPU EMR.
"""

from .kipu_client import (
    KipuClient,
    get_client,
    reset_client
)

__all__ = [
    "KipuClient",
    "get_client",
    "reset_client"
]
