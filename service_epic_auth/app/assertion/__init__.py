"""JWT client assertion construction (RFC 7523)."""

from .builder import AssertionBuilder, ClientAssertionClaims

__all__ = ["AssertionBuilder", "ClientAssertionClaims"]
