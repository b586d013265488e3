"""
Test Suite

Unit and API tests for the CRA request workflow backend. Tests run against
mongomock databases; see conftest.py for the shared fixtures.

To run tests:
    pytest backend/tests
"""
