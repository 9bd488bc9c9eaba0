"""
Test Suite for ShardoX API

Test Organization:
- conftest.py: Shared fixtures (test database, client, users, keys)
- test_credentials.py / test_api_key_validator.py / test_quota.py /
  test_usage.py: service-level tests
- test_auth.py / test_api_keys.py / test_users.py / test_admin.py:
  account endpoints
- test_authorization.py / test_short_urls.py: metered tool endpoints
- test_scenarios.py: end-to-end flows across services

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_quota.py

    # Run with verbose output
    pytest -v
"""
