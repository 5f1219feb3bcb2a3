"""
Shared utilities for the Epic Authenticator.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- result: Success-or-error values returned by credential operations
- secrets_manager: Secret store protocol and the bundled backend

Do not import from service_* packages into shared/.
"""
