"""Pytest configuration and shared fixtures for flatsocial tests."""

import os
import sys
import tempfile
from pathlib import Path
from typing import Generator

# Settings are read at import time; point them at a scratch directory first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="flatsocial-tests-"))

import pytest  # noqa: E402
from loguru import logger  # noqa: E402

from flatsocial.store import SocialStore  # noqa: E402


# =============================================================================
# Test Configuration
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_loguru() -> Generator[None, None, None]:
    """Reset loguru handlers before each test to prevent I/O errors."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="ERROR",
        format="{time} {level} {message}",
        catch=True,
    )
    yield
    logger.remove()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Empty data directory for one test."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir: Path) -> SocialStore:
    """Initialized store on an empty data directory."""
    social_store = SocialStore(data_dir)
    social_store.initialize()
    return social_store


@pytest.fixture
def alice(store: SocialStore) -> int:
    return store.create_user("alice", "secret")


@pytest.fixture
def bob(store: SocialStore) -> int:
    return store.create_user("bob", "hunter2")


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    """Small fake PNG to import as media."""
    path = tmp_path / "cat.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake-image-bytes")
    return path
