"""
Persistence for API credentials.

Credentials are the only state that outlives a session. They are kept as a
single JSON record under the fixed key AFF_GEN_KEYS:
  - in Redis when REDIS_URL is set and reachable
  - otherwise in a local JSON file
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config import CREDENTIALS_KEY, CREDENTIALS_PATH, REDIS_URL
from .pipeline.models import Credentials

logger = logging.getLogger(__name__)


# ── Lazy Redis client ─────────────────────────────────────────────────────────
_redis_client = None


def get_redis(redis_url: str = REDIS_URL):
    """Get or create a Redis client. Returns None if Redis is not configured or unreachable."""
    global _redis_client
    if _redis_client is None and redis_url:
        import redis
        client = redis.from_url(redis_url, decode_responses=True)
        try:
            client.ping()
            logger.info(f"Redis connected: {redis_url[:30]}...")
            _redis_client = client
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {e}; storing credentials on disk")
    return _redis_client


class CredentialStore:
    """Reads and rewrites the persisted credentials record."""

    def __init__(self, path: Path = CREDENTIALS_PATH, redis_client=None, key: str = CREDENTIALS_KEY):
        self.path = Path(path)
        self.redis = redis_client
        self.key = key

    def load(self) -> Credentials:
        try:
            raw = self._read()
            if not raw:
                return Credentials()
            return Credentials.model_validate_json(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Stored credentials are unreadable, starting without keys: {e}")
            return Credentials()

    def _read(self) -> Optional[str]:
        if self.redis is not None:
            return self.redis.get(self.key)
        if not self.path.exists():
            return None
        record = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        value = record.get(self.key) if isinstance(record, dict) else None
        return json.dumps(value) if value is not None else None

    def save(self, credentials: Credentials) -> None:
        payload = credentials.model_dump_json()
        if self.redis is not None:
            self.redis.set(self.key, payload)
        else:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            record = {self.key: json.loads(payload)}
            self.path.write_text(json.dumps(record, indent=2), encoding="utf-8")
        logger.info(f"Credentials saved ({'redis' if self.redis is not None else self.path})")


def default_store() -> CredentialStore:
    return CredentialStore(redis_client=get_redis())
