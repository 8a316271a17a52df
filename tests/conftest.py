import os
import tempfile
import time
from typing import Callable, Dict, Generator

import jwt
import pytest
from fastapi.testclient import TestClient

# Set test environment variables FIRST, before any application module reads them
_TEST_DIR = tempfile.mkdtemp(prefix="messaging-tests-")
_DB_PATH = os.path.join(_TEST_DIR, "test.db")

os.environ["DATABASE_URL"] = f"sqlite://{_DB_PATH}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["JWT_AUDIENCE"] = "messaging-app"
os.environ["JWT_ISSUER"] = "messaging-auth"

from database.migrations import run_migrations_sync  # noqa: E402
from database.postgres import user as user_repo  # noqa: E402


def make_token(
    sub: str,
    username: str = None,
    expires_in: int = 3600,
    secret: str = "test-secret-key",
    **claims,
) -> str:
    """Mint a token the way the external auth service does."""
    now = int(time.time())
    payload = {
        "sub": sub,
        "username": username or sub,
        "iat": now,
        "exp": now + expires_in,
        "aud": "messaging-app",
        "iss": "messaging-auth",
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(scope="function")
def setup_test_db() -> Generator[str, None, None]:
    """Set up a fresh SQLite database for each test."""
    if os.path.exists(_DB_PATH):
        os.unlink(_DB_PATH)

    run_migrations_sync()

    yield os.environ["DATABASE_URL"]

    try:
        os.unlink(_DB_PATH)
    except OSError:
        pass


@pytest.fixture(scope="function")
def client(setup_test_db) -> Generator[TestClient, None, None]:
    """Create a test client with a fresh database for each test."""
    from main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def users(setup_test_db) -> Dict[str, user_repo.User]:
    """Three users already known to the service."""
    return {
        user_id: user_repo.create_user(user_id, f"user-{user_id}")
        for user_id in ("u1", "u2", "u3")
    }


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, f'user-{user_id}')}"}

    return _headers
