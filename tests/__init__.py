"""Test suite for the DebtRescue.AI API.

Test structure follows the test pyramid:
- unit/: Unit tests - services and helpers in isolation (mocks, no I/O)
- integration/: Repository and service tests against a real SQLite database
- api/: API endpoint tests - full HTTP request/response cycle via TestClient

Tests run against a throwaway SQLite file database (aiosqlite driver); no
external services are required.
"""
