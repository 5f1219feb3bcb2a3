"""
Epic OAuth2 token exchange package.

Key points:
- One assertion per request; assertions are never reused or cached.
- No retries: any failed step aborts the whole call.
"""
