"""Mock Epic OAuth2 server."""
