"""Test suite for hashdemux.

Test organization:
- fixtures/: Mock HTO count generators
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/ -v --tb=short
"""
