import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Every key this service writes lives under this namespace
KEY_PREFIX = "leadintake:"


class CacheService:
    """JSON cache and leases on top of an async Redis client.

    With *redis_client* set to ``None`` (Redis down or not configured)
    reads miss and writes are dropped, so the rule documents and country
    flags simply come from the database every time.  Leases are granted
    unconditionally in that mode: a single process has nothing to
    coordinate against.

    Redis errors are logged and treated like a miss; the cache never
    fails the operation that uses it.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    @staticmethod
    def _key(key: str) -> str:
        return f"{KEY_PREFIX}{key}"

    # ------------------------------------------------------------------
    # JSON documents
    # ------------------------------------------------------------------

    async def get_json(self, key: str) -> Optional[Any]:
        """Return the decoded value under *key*, or ``None`` on a miss."""
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._key(key))
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Ignoring undecodable cache entry %s", key)
            return None

    async def set_json(self, key: str, data: Any, ttl: Optional[int] = None) -> None:
        """Store *data* as JSON, expiring after *ttl* seconds when given."""
        if self._redis is None:
            return
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError):
            logger.warning("Value for cache key %s is not JSON serialisable", key)
            return
        try:
            if ttl:
                await self._redis.setex(self._key(key), ttl, payload)
            else:
                await self._redis.set(self._key(key), payload)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, *keys: str) -> None:
        """Drop *keys* in one round trip (best-effort)."""
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*(self._key(k) for k in keys))
        except Exception:
            logger.warning("Redis DELETE failed for keys %s", ", ".join(keys))

    # ------------------------------------------------------------------
    # Leases: at most one score decay sweep at a time
    # ------------------------------------------------------------------

    async def acquire_lease(self, key: str, owner: str, ttl: int) -> bool:
        """Take *key* for *owner* for *ttl* seconds (``SET NX EX``).

        Returns ``False`` when someone else holds it, and also on a Redis
        error, so two workers never both believe they won.
        """
        if self._redis is None:
            return True
        try:
            return bool(await self._redis.set(self._key(key), owner, nx=True, ex=ttl))
        except Exception:
            logger.warning("Redis lease acquisition failed for key %s", key)
            return False

    async def release_lease(self, key: str, owner: str) -> None:
        """Release *key* if *owner* still holds it.

        A lease that expired and was taken by another worker is left alone.
        """
        if self._redis is None:
            return
        try:
            current = await self._redis.get(self._key(key))
            if isinstance(current, bytes):
                current = current.decode()
            if current == owner:
                await self._redis.delete(self._key(key))
        except Exception:
            logger.warning("Redis lease release failed for key %s", key)
