"""
Shared error handling for the Epic Authenticator.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error body returned to callers of the exposed operations."""

    error: str


class EpicAuthError(Exception):
    """Base exception for Epic Authenticator failures."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ConfigError(EpicAuthError):
    """Missing or invalid deployment configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIG_ERROR", message, details)


class AccessDeniedError(EpicAuthError):
    """Caller lacks the privilege an operation requires."""

    status_code = 403

    def __init__(self, message: str = "Access denied. Super users only.", details: Optional[Dict[str, Any]] = None):
        super().__init__("ACCESS_DENIED", message, details)


class SecretError(EpicAuthError):
    """Secret could not be resolved from the secret store."""

    def __init__(self, message: str = "Secret could not be loaded", details: Optional[Dict[str, Any]] = None):
        super().__init__("SECRET_ERROR", message, details)


class FetchError(EpicAuthError):
    """Transport failure or non-success status while fetching a JWKS document."""

    def __init__(self, url: str, message: str = "Unable to fetch JWKS", details: Optional[Dict[str, Any]] = None):
        self.url = url
        super().__init__("FETCH_ERROR", f"{message}: {url}", {"url": url, **(details or {})})


class ParseError(EpicAuthError):
    """Remote JWKS document is malformed."""

    def __init__(self, message: str = "Invalid JWKS JSON or missing kid in JWKS", details: Optional[Dict[str, Any]] = None):
        super().__init__("PARSE_ERROR", message, details)


class NetworkError(EpicAuthError):
    """Transport failure talking to the token endpoint."""

    def __init__(self, message: str = "Error calling Epic token endpoint", details: Optional[Dict[str, Any]] = None):
        super().__init__("NETWORK_ERROR", message, details)


class TokenEndpointError(EpicAuthError):
    """Token endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, details: Optional[Dict[str, Any]] = None):
        self.upstream_status = status_code
        self.body = body
        super().__init__(
            "TOKEN_ENDPOINT_ERROR",
            f"Epic token endpoint returned HTTP {status_code}: {body}",
            {"status_code": status_code, "body": body, **(details or {})},
        )


class ResponseFormatError(EpicAuthError):
    """Token endpoint answered 2xx with an unusable body."""

    def __init__(self, message: str = "Epic token response is invalid or missing access_token", details: Optional[Dict[str, Any]] = None):
        super().__init__("RESPONSE_FORMAT_ERROR", message, details)


class KeyParseError(EpicAuthError):
    """PEM key material could not be parsed as an RSA key."""

    def __init__(self, message: str = "Failed to parse RSA key", details: Optional[Dict[str, Any]] = None):
        super().__init__("KEY_PARSE_ERROR", message, details)


class SigningError(EpicAuthError):
    """Client assertion could not be signed."""

    def __init__(self, message: str = "Failed to build client assertion JWT", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_ERROR", message, details)


class EncodingError(EpicAuthError):
    """JWKS document could not be serialized."""

    def __init__(self, message: str = "Failed to encode JWKS JSON", details: Optional[Dict[str, Any]] = None):
        super().__init__("ENCODING_ERROR", message, details)
