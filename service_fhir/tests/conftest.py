"""
Shared fixtures for FHIR Facade tests.
"""

import fnmatch
from typing import Dict, List, Optional, Tuple

import pytest


class InMemoryCacheStore:
    """Dict-backed stand-in for RedisCacheStore that records every call."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def get_string(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        self._maybe_fail()
        return self.data.get(key)

    async def set_string(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls.append(("set", key))
        self._maybe_fail()
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def remove(self, key: str) -> None:
        self.calls.append(("remove", key))
        self._maybe_fail()
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def remove_pattern(self, pattern: str) -> int:
        self.calls.append(("remove_pattern", pattern))
        self._maybe_fail()
        matched = [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            self.data.pop(key, None)
            self.ttls.pop(key, None)
        return len(matched)

    async def ping(self) -> bool:
        self._maybe_fail()
        return True

    async def close(self) -> None:
        pass

    def removed(self) -> List[str]:
        return [key for op, key in self.calls if op in ("remove", "remove_pattern")]


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []
        self.histograms = []

    def increment_counter(self, metric_name: str, **labels):
        self.counters.append((metric_name, labels))

    def observe_histogram(self, metric_name: str, value: float, **labels):
        self.histograms.append((metric_name, value, labels))


@pytest.fixture
def cache_store():
    return InMemoryCacheStore()


@pytest.fixture
def dummy_metrics():
    return DummyMetrics()
