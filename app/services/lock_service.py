import uuid

import redis

from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje lua atomowo, nie da sie wcisnac miedzy GET a DEL
#wiec nie zwolnimy locka ktory w miedzyczasie wygasl i przejal ktos inny


class LockService:
    """
    -serializacja operacji na koszyku jednego kupujacego (lock per tenant+buyer)
    -zwalnianie locka tylko przez wlasciciela tokenu
    -dziala miedzy instancjami serwisu (stan w redisie, nie w procesie)
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(tenant_id: int, buyer_id: int) -> str:
        return f"cart:{tenant_id}:{buyer_id}:lock"

    @staticmethod
    def new_token() -> str:
        return uuid.uuid4().hex

    @redis_retry()
    def acquire_cart_lock(self, tenant_id: int, buyer_id: int, token: str, ttl: int = CART_LOCK_TTL_SECONDS) -> bool:
        key = self._key(tenant_id, buyer_id)
        logger.info(f"Acquire lock {key}")
        #SET cart:1:2:lock "<token>" NX EX 30
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_cart_lock(self, tenant_id: int, buyer_id: int, token: str) -> bool:
        key = self._key(tenant_id, buyer_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
