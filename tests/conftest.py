import os
import warnings

# Ignore warnings from redis/jwt internals during tests
warnings.filterwarnings("ignore", category=DeprecationWarning, module="redis.*")

# Set test environment variables before anything reads the configuration
os.environ.update(
    {
        "JWT_SECRET": "test-secret-key-that-is-long-enough-for-hs256",
        "TOKEN_EXPIRE_SECONDS": "3600",
        "REDIS_URL": "redis://localhost:6379/15",
        "STREAM_BOUNDARY": "myboundary",
        "STREAM_REQUIRE_AUTH": "true",
        "SEED_USERS": "",
        "DEBUG": "false",
    }
)

from tests.fixtures.auth_fixtures import *  # noqa: E402, F403
from tests.fixtures.stream_fixtures import *  # noqa: E402, F403
