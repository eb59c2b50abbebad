import os

# Must be set before main/config are imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from amount import Amount
from repositories import InMemoryAccountRepository


def amt(value: float) -> Amount:
    return Amount.from_decimal(value)


@pytest.fixture
def store():
    return InMemoryAccountRepository()
