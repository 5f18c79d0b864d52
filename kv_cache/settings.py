import os
from kv_cache.paths import DEFAULT_CACHE_DIR


# Global configuration for cache location and default time-to-live.
class Settings:
    cache_dir = os.getenv("KV_CACHE_DIR", str(DEFAULT_CACHE_DIR))
    cache_ttl_seconds = float(os.getenv("KV_CACHE_TTL_SECONDS", "3600"))


settings = Settings()
