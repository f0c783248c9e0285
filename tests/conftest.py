"""
Shared pytest fixtures for kagent tests.

This module provides common fixtures including:
- Redis mocks for store tests
- In-memory Redis fake for API tests that read back what they write
- FastAPI test client wired to the fake store
- Byte stream sources for SSE tests
"""

import asyncio
import fnmatch
import os
import sys
from typing import List, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kagent.modules.config import reset_config
from kagent.modules.store import ResourceStore


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)
    redis.sadd = AsyncMock()
    redis.srem = AsyncMock()
    redis.smembers = AsyncMock(return_value=set())
    redis.ping = AsyncMock(return_value=True)

    return redis


class FakeRedis:
    """
    Redis stand-in with in-memory data storage for more realistic tests.

    Implements only the commands the store uses.
    """

    def __init__(self):
        self._storage = {}
        self._sets = {}

    async def set(self, key, value, nx=False, xx=False, **kwargs):
        if nx and key in self._storage:
            return None
        if xx and key not in self._storage:
            return None
        self._storage[key] = value
        return True

    async def get(self, key):
        return self._storage.get(key)

    async def delete(self, *keys):
        count = 0
        for key in keys:
            if key in self._storage:
                del self._storage[key]
                count += 1
        return count

    async def exists(self, *keys):
        return sum(1 for k in keys if k in self._storage)

    async def keys(self, pattern):
        return [k for k in self._storage if fnmatch.fnmatch(k, pattern)]

    async def sadd(self, key, *members):
        self._sets.setdefault(key, set()).update(members)
        return len(members)

    async def srem(self, key, *members):
        current = self._sets.get(key, set())
        removed = len(current.intersection(members))
        current.difference_update(members)
        return removed

    async def smembers(self, key):
        return set(self._sets.get(key, set()))

    async def ping(self):
        return True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return ResourceStore(fake_redis)


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Pin configuration to a test namespace and reset the singleton around each test."""
    monkeypatch.setenv("KAGENT_NAMESPACE", "test-ns")
    reset_config()
    yield
    reset_config()


# =============================================================================
# FastAPI Test App
# =============================================================================

@pytest.fixture
def app(store):
    from kagent.main import create_app

    app = create_app(use_lifespan=False)
    app.state.store = store
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# SSE Sources
# =============================================================================

class AsyncChunkSource:
    """
    Async byte source yielding fixed chunks, optionally failing at the end.

    Records how many times it was closed.
    """

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.close_count = 0
        self.chunks_read = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.close_count += 1


class HangingAsyncSource(AsyncChunkSource):
    """Yields its chunks, then blocks until closed."""

    def __init__(self, chunks: List[bytes]):
        super().__init__(chunks)
        self._closed = asyncio.Event()

    async def _iterate(self):
        for chunk in self.chunks:
            self.chunks_read += 1
            yield chunk
        await self._closed.wait()

    async def aclose(self):
        self.close_count += 1
        self._closed.set()


class BlockingByteSource:
    """
    Blocking readable over a byte string, for the threaded stream.

    With hang=True, read() blocks after the data runs out until close().
    """

    def __init__(self, data: bytes, chunk_size: int = 7, hang: bool = False, error=None):
        import threading

        self._data = data
        self._pos = 0
        self._chunk_size = chunk_size
        self._hang = hang
        self._error = error
        self._closed = threading.Event()
        self.close_count = 0

    def read(self, size: int = -1) -> bytes:
        if self._closed.is_set():
            raise ValueError("read of closed source")
        if self._pos < len(self._data):
            end = self._pos + min(size, self._chunk_size)
            chunk = self._data[self._pos:end]
            self._pos = end
            return chunk
        if self._error is not None:
            raise self._error
        if self._hang:
            self._closed.wait()
            raise ValueError("read of closed source")
        return b""

    def close(self) -> None:
        self.close_count += 1
        self._closed.set()


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
