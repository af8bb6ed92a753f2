"""
conftest.py - Shared pytest fixtures for curve_ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- A funded backing asset
- Uninitialized, initialized and pre-minted tokens
"""

import pytest

from tests.helpers import ALICE, WAD, make_backing, make_token


@pytest.fixture
def backing():
    """Funded backing asset."""
    return make_backing()


@pytest.fixture
def fresh_token(backing):
    """Token constructed and approved but not yet initialized."""
    return make_token(backing, initialize=False)


@pytest.fixture
def token(backing):
    """Initialized token at the opening price of 1.0 (seed of one whole token)."""
    return make_token(backing)


@pytest.fixture
def minted_token(token):
    """Initialized token where alice has minted 100 whole tokens at price 1.0."""
    token.mint(ALICE, 100 * WAD)
    return token
