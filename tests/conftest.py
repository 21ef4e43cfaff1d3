"""Root conftest — shared fixtures for all tests."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env at the root so smoke tests pick up credentials.
load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=False)


@pytest.fixture
def user_id() -> int:
    """Forwarded panel user id."""
    return 42


@pytest.fixture
def admin_user_id() -> int:
    """Forwarded panel admin id."""
    return 1
