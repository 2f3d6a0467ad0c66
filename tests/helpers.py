"""
Helpers shared by the test modules
"""

import fnmatch
import json
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from redis.exceptions import ResponseError


def manifest(groups: Dict[str, List[Dict[str, Any]]]) -> str:
    """Serialize binding groups the way the platform exposes them"""
    return json.dumps(groups)


def fake_connect(connection):
    """Replacement for a service's ``connect`` that yields ``connection``"""
    @asynccontextmanager
    async def _connect():
        yield connection
    return _connect


class FakeRedis:
    """Subset of redis.asyncio.Redis backed by a dict"""

    def __init__(self, data=None, hashes=()):
        self.data = dict(data or {})
        self.hashes = set(hashes)
        self.ttls = {}

    async def get(self, key):
        if key in self.hashes:
            raise ResponseError("WRONGTYPE Operation against a key holding the wrong kind of value")
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        if ex:
            self.ttls[key] = ex
        return True

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    async def exists(self, key):
        return int(key in self.data or key in self.hashes)

    async def keys(self, pattern):
        return [key for key in list(self.data) + list(self.hashes) if fnmatch.fnmatchcase(key, pattern)]
