import asyncio
import threading
import time
from collections import defaultdict

import pytest

from workload.errors import TransportFailure
from workload.events import Response


class FakeTransport:
    """Records every call; answers 200 unless told to fail."""

    def __init__(self, fail=False, status=200, delay=0.0):
        self.fail = fail
        self.status = status
        self.delay = delay
        self.calls = []

    async def send(self, method, url, headers, body):
        self.calls.append((method, url, dict(headers), body))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise TransportFailure("connection reset", cause=ConnectionResetError())
        return Response(status_code=self.status, reason="OK", headers={}), b"hello"


class FakePipeline:
    def __init__(self, r):
        self.r = r
        self.ops = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        return [getattr(self.r, name)(*args, **kwargs) for name, args, kwargs in self.ops]


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for MetricsStore."""

    def __init__(self):
        self.hashes = defaultdict(dict)
        self.zsets = defaultdict(dict)
        self.up = True

    def pipeline(self):
        return FakePipeline(self)

    def hincrby(self, key, field, amount=1):
        h = self.hashes[key]
        h[field] = str(int(h.get(field, 0)) + amount)
        return int(h[field])

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def zincrby(self, key, amount, member):
        z = self.zsets[key]
        z[member] = z.get(member, 0.0) + amount
        return z[member]

    def zrevrange(self, key, start, end, withscores=False):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1], reverse=True)
        items = items[start:end + 1]
        return items if withscores else [k for k, _ in items]

    def delete(self, *keys):
        n = 0
        for key in keys:
            n += int(self.hashes.pop(key, None) is not None)
            n += int(self.zsets.pop(key, None) is not None)
        return n

    def ping(self):
        if not self.up:
            raise ConnectionError("Connection refused")
        return True


class SlowRedis(FakeRedis):
    """FakeRedis whose writes take ``delay`` seconds, like a congested server."""

    def __init__(self, delay):
        super().__init__()
        self.delay = delay
        self.lock = threading.Lock()

    def hincrby(self, key, field, amount=1):
        time.sleep(self.delay)
        with self.lock:
            return super().hincrby(key, field, amount)

    def zincrby(self, key, amount, member):
        with self.lock:
            return super().zincrby(key, amount, member)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def slow_redis():
    return SlowRedis
