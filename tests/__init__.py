"""
Seed Farm Test Suite
====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with mocks and in-memory SQLite
- tests/unit/domain/   : Pure domain value object tests
- tests/integration/   : Testcontainers tests (real Redis / PostgreSQL)

Use pytest markers to select: ``-m unit``, ``-m domain``, ``-m integration``.
"""
