"""Epic Authenticator application package."""
