# db/redis_client.py
import redis.asyncio as redis

from commission_guard.config import get_settings

# Create a Redis client instance
redis_client = redis.from_url(get_settings().redis_url, decode_responses=True)

async def get_redis():
    """
    Dependency to provide Redis client in FastAPI endpoints
    Usage: `redis: redis.Redis = Depends(get_redis)`
    """
    try:
        yield redis_client
    finally:
        pass  # client persists for the app lifetime
