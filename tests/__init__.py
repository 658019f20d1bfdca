"""
Libris Test Suite

Tests are organized into:
- unit/: Unit tests for the storage layer and circulation services
- integration/: API tests and multi-threaded consistency tests
"""
