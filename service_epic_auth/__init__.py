"""
Epic Authenticator service.

Issues Epic OAuth2 access tokens through the private_key_jwt client
assertion flow and publishes this service's public signing key as a JWKS.
"""
