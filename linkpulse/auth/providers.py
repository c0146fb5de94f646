"""
Authentication boundary.

Identity is verified upstream (gateway / SSO); the service only needs the
resulting owner identifier, which it trusts verbatim.
"""

from abc import ABC, abstractmethod

from fastapi import Request

from linkpulse.errors import Unauthenticated


class AuthProvider(ABC):
    """Maps an inbound request to an authenticated owner id"""

    @abstractmethod
    async def authenticate(self, request: Request) -> str:
        """
        Returns:
            Owner identifier

        Raises:
            Unauthenticated: the request carries no usable identity
        """
        pass


class HeaderAuthProvider(AuthProvider):
    """Reads the owner id an upstream proxy forwarded in a request header"""

    def __init__(self, header_name: str = "X-Owner-Id"):
        self.header_name = header_name

    async def authenticate(self, request: Request) -> str:
        owner_id = request.headers.get(self.header_name, "").strip()
        if not owner_id:
            raise Unauthenticated(f"Missing {self.header_name} header")
        return owner_id
