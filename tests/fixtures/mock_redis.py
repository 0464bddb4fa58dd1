import redis


class MockRedisClient:
    def __init__(self):
        self.store = {}
        self.hashes = {}
        self.lists = {}
        self.published = []

    def get(self, k):
        return self.store.get(k)

    def set(self, k, v, ex=None):
        self.store[k] = v

    def delete(self, k):
        self.store.pop(k, None)
        self.hashes.pop(k, None)
        self.lists.pop(k, None)

    def ping(self):
        return True

    def hsetnx(self, k, field, v):
        h = self.hashes.setdefault(k, {})
        if field in h:
            return 0
        h[field] = v
        return 1

    def hvals(self, k):
        return list(self.hashes.get(k, {}).values())

    def hlen(self, k):
        return len(self.hashes.get(k, {}))

    def lpush(self, k, v):
        self.lists.setdefault(k, []).insert(0, v)
        return len(self.lists[k])

    def ltrim(self, k, start, end):
        self.lists[k] = self.lists.get(k, [])[start:end + 1]

    def lrange(self, k, start, end):
        return self.lists.get(k, [])[start:end + 1]

    def publish(self, channel, message):
        self.published.append((channel, message))
        return 1


class BrokenRedisClient(MockRedisClient):
    def ping(self):
        raise redis.ConnectionError('connection refused')

    def get(self, k):
        raise redis.ConnectionError('connection refused')

    def set(self, k, v, ex=None):
        raise redis.ConnectionError('connection refused')

    def hsetnx(self, k, field, v):
        raise redis.ConnectionError('connection refused')

    def lpush(self, k, v):
        raise redis.ConnectionError('connection refused')
