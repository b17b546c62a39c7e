from app.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from app.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    key = "k1"
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is False
    assert rl.allow("k2", max_requests=2, window_seconds=60) is True


def test_memory_rate_limiter_window_slides():
    now = [1000.0]
    rl = InMemoryRateLimiter(clock=lambda: now[0])
    assert rl.allow("k", max_requests=1, window_seconds=60) is True
    assert rl.allow("k", max_requests=1, window_seconds=60) is False
    now[0] += 61
    assert rl.allow("k", max_requests=1, window_seconds=60) is True


def test_memory_rate_limiter_forgets_idle_clients():
    now = [1000.0]
    rl = InMemoryRateLimiter(clock=lambda: now[0])
    for i in range(50):
        rl.allow(f"ip:10.0.0.{i}", max_requests=5, window_seconds=60)
    assert len(rl._store) == 50

    now[0] += 61
    assert rl.allow("ip:10.0.1.1", max_requests=5, window_seconds=60) is True
    assert list(rl._store) == ["ip:10.0.1.1"]


class FakePipe:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def incr(self, k, n):
        self.ops.append(("incr", k, n))
        return self

    def expire(self, k, s, nx=False):
        self.ops.append(("expire", k, s, nx))
        return self

    def execute(self):
        results = []
        for op in self.ops:
            if op[0] == "incr":
                self.client.store[op[1]] = self.client.store.get(op[1], 0) + op[2]
                results.append(self.client.store[op[1]])
            else:
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.store = {}

    def pipeline(self):
        return FakePipe(self)


def test_redis_rate_limiter_with_fake():
    client = FakeRedis()
    rl = RedisRateLimiter(url="redis://fake", client=client)

    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False
    assert client.store == {"rl:k1:60": 3}
