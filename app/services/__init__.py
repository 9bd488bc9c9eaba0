"""
Services Package

Business logic kept separate from HTTP handling (routers), so it can be
reused and tested in isolation.

Current services:
- security.py: bcrypt hashing (passwords, API keys) and JWT utilities
- credentials.py: identity registration, login check, API key issue/revoke
- api_key_validator.py: authenticate a presented API key
- quota.py: per-identity daily quota checks and atomic counter updates
- usage.py: capped usage log and usage statistics
- authorization.py: key extraction and the admit/reject flow
- short_urls.py: short link creation and resolution
- rate_limiter.py: per-IP throttling with slowapi
"""
