"""
Authentication headers: Basic, Bearer, API key and Digest.
"""

from .auth import Auth
from .digest import Digest

__all__ = ["Auth", "Digest"]
