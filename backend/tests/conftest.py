"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from ticker_stream.auth import TokenService, User
from ticker_stream.config import Settings
from ticker_stream.market.seed_tickers import DEFAULT_TICKERS
from ticker_stream.market.store import TickerStore

TEST_SECRET = "test-secret"


@pytest.fixture
def store():
    """Fresh store over the default ticker table."""
    return TickerStore(DEFAULT_TICKERS)


@pytest.fixture
def rng():
    """Seeded generator so random-walk tests are reproducible."""
    return np.random.default_rng(12345)


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture
def test_user():
    return User(id="123", username="testuser", email="test@example.com")


@pytest.fixture
def valid_token(tokens, test_user):
    return tokens.issue(test_user)


@pytest.fixture
def settings():
    """Settings tuned for tests: fast ticks, known secret, no .env lookup."""
    return Settings(
        jwt_secret=TEST_SECRET,
        tick_interval_ms=50,
        cache_sweep_interval=0.1,
        log_level="WARNING",
    )
