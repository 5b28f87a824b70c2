"""
Test suite for the taxed ledger and buy-back-and-burn treasury

Contains:
- tests/conftest.py : Shared chain/router/ledger/treasury deployment fixtures
- tests/unit/       : Unit tests for individual modules and contract scenarios
"""
