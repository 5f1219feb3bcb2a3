"""
Mock Epic server providing a JWKS host and a client-assertion token endpoint.
"""

import secrets
import time
from typing import Dict, Any, Optional, Set
from urllib.parse import parse_qs

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from jose import jwt
from jose.exceptions import JOSEError

from shared.logging import get_logger

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
MAX_ASSERTION_LIFETIME = 300


class MockEpicServer:
    """Mock Epic OAuth2 server implementation."""

    def __init__(self, client_id: str, registered_jwks: Dict[str, Any], base_url: str = "http://testserver"):
        self.logger = get_logger("mock.epic")
        self.app = FastAPI(title="Mock Epic", version="1.0.0")

        self.client_id = client_id
        self.base_url = base_url.rstrip("/")
        self.token_url = f"{self.base_url}/oauth2/token"
        self.jwks_url = f"{self.base_url}/.well-known/jwks.json"

        # JWKS registered for the client, as uploaded to Epic's app orchard
        self.registered_jwks = registered_jwks
        self.seen_jtis: Set[str] = set()
        self.issued_tokens: Dict[str, str] = {}

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock Epic routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-epic",
                "message": "Mock Epic server for the Epic Authenticator",
                "version": "1.0.0",
                "token_endpoint": self.token_url,
            }

        @self.app.get("/.well-known/jwks.json")
        async def jwks_endpoint():
            """Client JWKS, hosted the way the client publishes it."""
            return self.registered_jwks

        @self.app.post("/oauth2/token")
        async def token_endpoint(request: Request):
            """Client credentials grant with private_key_jwt authentication."""
            form = {key: values[0] for key, values in parse_qs((await request.body()).decode()).items()}

            if form.get("grant_type") != "client_credentials":
                return self._error(400, "unsupported_grant_type")
            if form.get("client_assertion_type") != CLIENT_ASSERTION_TYPE:
                return self._error(400, "invalid_request", "Unsupported client_assertion_type")
            if form.get("client_id") != self.client_id:
                return self._error(401, "invalid_client")

            claims = self._verify_assertion(form.get("client_assertion"))
            if claims is None:
                return self._error(401, "invalid_client")

            access_token = secrets.token_urlsafe(32)
            self.issued_tokens[access_token] = claims["jti"]
            return {
                "access_token": access_token,
                "token_type": "Bearer",
                "expires_in": 3600,
                "scope": "system/Patient.read",
            }

    def _verify_assertion(self, assertion: Optional[str]) -> Optional[Dict[str, Any]]:
        """Verify the client assertion against the registered JWKS."""
        if not assertion:
            return None

        try:
            header = jwt.get_unverified_header(assertion)
        except JOSEError:
            return None

        key = self._find_key(header.get("kid"))
        if key is None:
            self.logger.warning("Assertion kid not registered", kid=header.get("kid"))
            return None

        # Keys are matched by kid; the advertised alg is not enforced
        key = {name: value for name, value in key.items() if name != "alg"}

        try:
            claims = jwt.decode(
                assertion,
                key,
                algorithms=["RS256", "RS384"],
                audience=self.token_url,
                issuer=self.client_id,
            )
        except JOSEError as exc:
            self.logger.warning("Assertion rejected", error=str(exc))
            return None

        if claims.get("sub") != self.client_id:
            return None
        issued_at, expires_at = claims.get("iat"), claims.get("exp")
        if not isinstance(issued_at, int) or not isinstance(expires_at, int):
            self.logger.warning("Assertion missing iat or exp")
            return None
        if expires_at - issued_at > MAX_ASSERTION_LIFETIME or issued_at > time.time() + 60:
            return None

        jti = claims.get("jti")
        if not jti or jti in self.seen_jtis:
            self.logger.warning("Assertion replayed", jti=jti)
            return None
        self.seen_jtis.add(jti)

        return claims

    def _find_key(self, kid: Optional[str]) -> Optional[Dict[str, Any]]:
        for key in self.registered_jwks.get("keys", []):
            if key.get("kid") == kid:
                return key
        return None

    @staticmethod
    def _error(status_code: int, error: str, description: Optional[str] = None) -> JSONResponse:
        content = {"error": error}
        if description:
            content["error_description"] = description
        return JSONResponse(status_code=status_code, content=content)


def create_app(client_id: str, registered_jwks: Dict[str, Any]):
    """Create mock Epic application."""
    server = MockEpicServer(client_id, registered_jwks)
    return server.app
