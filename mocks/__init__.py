"""Mock external services used by integration tests."""
